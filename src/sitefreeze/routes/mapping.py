"""Page mappings: the (url, target path) pairs a run fetches and writes."""

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import PurePosixPath

from sitefreeze._errors import DuplicateTargetError
from sitefreeze._types import MappingKind, TargetPath, Url


@dataclass(frozen=True, slots=True)
class PageMapping:
    """One route of the live site and where its bytes land in the snapshot.

    Attributes:
        url: Absolute URL fetched from the site server.
        target_path: Forward-slash path relative to the backend target.
        kind: ``"page"`` for rendered routes, ``"feed"`` for the RSS feed,
            ``"file"`` for fixed root files, ``"asset"`` for crawled files.

    """

    url: Url
    target_path: TargetPath
    kind: MappingKind = "page"


def ensure_unique_targets(mappings: Iterable[PageMapping]) -> None:
    """Raise if two mappings would write the same target path.

    A target that is a directory prefix of another target also collides:
    ``robots.txt`` cannot be a file and hold ``robots.txt/index.html``.

    Raises:
        DuplicateTargetError: Naming both URLs that collide.

    """
    seen: dict[TargetPath, Url] = {}
    for mapping in mappings:
        previous = seen.get(mapping.target_path)
        if previous is not None:
            msg = (
                f"Target path {mapping.target_path!r} is produced by both "
                f"{previous} and {mapping.url}"
            )
            raise DuplicateTargetError(msg)
        seen[mapping.target_path] = mapping.url

    for target, url in seen.items():
        for parent in PurePosixPath(target).parents[:-1]:
            owner = seen.get(str(parent))
            if owner is not None:
                msg = (
                    f"Target path {str(parent)!r} from {owner} is also a "
                    f"directory of {target!r} from {url}"
                )
                raise DuplicateTargetError(msg)
