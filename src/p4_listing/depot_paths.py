from __future__ import annotations

from p4_listing.exceptions import MissingContextError

DEPOT_ROOT = "//"


def stream_depth(stream: str) -> int:
    """Get the depth of a stream from a path such as the depot's `StreamDepth` field.

    The depth counts the depot name, so `//UE4/1` has a depth of 2 and every
    stream of that depot lives under `//UE4/<name>/`.

    Args:
        stream (str): a depot path, ie '//UE4/1' or '//UE4/1/2'

    Raises:
        MissingContextError: if the path does not have enough slashes.

    Returns:
        int: the number of path segments forming the stream root
    """
    depth = stream.count("/") - 1
    if not stream or depth < 1:
        raise MissingContextError(subject=stream, reason="unable to determine depth")
    return depth


def depot_prefix(line: str, depth: int) -> str:
    """Get the stream prefix of a depot path.

    For example `depot_prefix("//a/b/c/d:foo", 2)` returns `"//a/b/"`.

    Args:
        line (str): a depot path, it must start with '//'
        depth (int): the number of path segments to keep after '//'

    Raises:
        MissingContextError: if `line` does not start with '//' or has fewer than `depth` segments.

    Returns:
        str: the leading part of `line`, up to and including its `depth`-th slash after '//'
    """
    if not line.startswith(DEPOT_ROOT):
        raise MissingContextError(subject=line, reason="line does not begin with '//'")
    end = len(DEPOT_ROOT)
    for _ in range(depth):
        slash = line.find("/", end)
        if slash < 0:
            raise MissingContextError(
                subject=line,
                reason=f"line has fewer than {depth} path segments after '//'",
            )
        end = slash + 1
    return line[:end]


def depot_name(line: str) -> str:
    """Get the depot name of a depot path, ie 'a' for '//a/b/c/d:foo'."""
    name = depot_prefix(line, 1)[len(DEPOT_ROOT) : -1]
    if not name:
        raise MissingContextError(subject=line, reason="line does not have a full depot prefix")
    return name
