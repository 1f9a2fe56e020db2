"""Choosing the cloud a command operates on."""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union


@dataclass(frozen=True)
class Disambiguation:
    """The target cloud could not be chosen without the user's help.

    ``candidates`` holds the Cloudfile entries when there are many, and
    is empty when the Cloudfile declares no cloud at all.
    """

    candidates: Tuple[str, ...] = ()

    @property
    def multiple(self) -> bool:
        return bool(self.candidates)


def resolve(manifest_clouds: Sequence[str], explicit: Optional[str] = None) -> Union[str, Disambiguation]:
    """Pick the target cloud's code name.

    An explicit ``--cloud`` wins and is used verbatim; the API rejects
    clouds the user can't reach. Otherwise a Cloudfile with exactly one
    cloud decides; zero or many never guess.
    """
    if explicit:
        return explicit
    if len(manifest_clouds) == 1:
        return manifest_clouds[0]
    return Disambiguation(candidates=tuple(manifest_clouds))
