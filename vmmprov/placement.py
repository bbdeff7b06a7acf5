"""Host placement: rank rated candidates and pick one, breaking ties at random."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from loguru import logger

from .errors import NoEligibleHostError
from .models import HostCandidate, VMHost

if TYPE_CHECKING:
    from .vmm import VMMClient

log = logger


def rank_candidates(raw: Iterable[HostCandidate]) -> list[HostCandidate]:
    return sorted(raw, key=lambda c: c.rating, reverse=True)


def tie_band_size(candidates: Sequence[HostCandidate]) -> int:
    """Number of leading candidates that share the top rating."""
    if not candidates:
        return 0
    top = candidates[0].rating
    k = 1
    while k < len(candidates) and candidates[k].rating == top:
        k += 1
    return k


def select_host(
    candidates: Sequence[HostCandidate],
    rng: Optional[random.Random] = None,
) -> str:
    """Choose a host from candidates sorted by rating, highest first.

    A unique top rating wins outright. When several leading candidates
    share the top rating, one of them is drawn uniformly at random;
    candidates past that band are never chosen.

    Raises:
        NoEligibleHostError: if there are no candidates or the best
            rating is zero.
    """
    if not candidates:
        raise NoEligibleHostError('No candidate hosts were rated.')
    top = candidates[0]
    if top.rating <= 0:
        raise NoEligibleHostError(
            'No host can accommodate the request; all '
            f'{len(candidates)} candidate(s) are rated 0.'
        )
    k = tie_band_size(candidates)
    if k == 1:
        return top.name
    idx = (rng or random).randrange(k)
    log.debug(
        'Tie between {} hosts at rating {}; picked index {} ({})',
        k,
        top.rating,
        idx,
        candidates[idx].name,
    )
    return candidates[idx].name


def place_vm(
    client: 'VMMClient',
    *,
    host_group: str,
    template: str,
    disk_space_gb: int,
    vm_name: str,
    rng: Optional[random.Random] = None,
) -> VMHost:
    ratings = rank_candidates(
        client.get_host_ratings(host_group, template, disk_space_gb, vm_name)
    )
    for cand in ratings:
        log.debug('Rating for {}: host={} rating={}', vm_name, cand.name, cand.rating)
    name = select_host(ratings, rng=rng)
    host = client.get_host(name)
    log.info('Placing {} on host {}', vm_name, host.name)
    return host
