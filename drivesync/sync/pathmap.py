"""Destination path derivation with rsync-style trailing-slash semantics."""


def _segments(path: str) -> list[str]:
    # ".." is dropped rather than resolved
    return [part for part in path.split("/") if part not in ("", ".", "..")]


def dest_path(src_root: str, dst_root: str, src_path: str) -> str:
    """Compute the destination of a source entry.

    Like rsync, a source root ending in a slash means "copy the contents of
    this directory into the destination", while a root without one means
    "copy this directory itself into the destination".

    Args:
        src_root: Source root as given by the user
        dst_root: Destination directory
        src_path: Path of an entry at or below src_root

    Returns:
        Destination path, components joined with "/" and no leading slash

    Examples:
        >>> dest_path("/d1", "/dest", "/d1/foo")
        'dest/d1/foo'
        >>> dest_path("/d1/", "/dest", "/d1/foo")
        'dest/foo'
        >>> dest_path(".", "/dest", "./foo/bar")
        'dest/foo/bar'
    """
    root = _segments(src_root)
    relative = _segments(src_path)[len(root) :]

    dst = _segments(dst_root)
    if not src_root.endswith("/") and root:
        dst.append(root[-1])
    dst.extend(relative)

    return "/".join(dst)


def resolve_dest(src_root: str, dst_root: str, src_path: str) -> str:
    """Like ``dest_path``, but keeps an absolute destination root absolute.

    ``dest_path`` always yields a relative path; backends that resolve
    relative paths against a working directory need the leading slash back.

    Examples:
        >>> resolve_dest("/d1", "/dest", "/d1/foo")
        '/dest/d1/foo'
        >>> resolve_dest("/d1", "dest", "/d1/foo")
        'dest/d1/foo'
        >>> resolve_dest("/d1/", ".", "/d1/")
        '.'
    """
    dst = dest_path(src_root, dst_root, src_path)
    if dst_root.startswith("/"):
        return "/" + dst
    # Contents copied straight into a relative root such as "."
    return dst or "."
