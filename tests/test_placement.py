"""Tests for host ranking and tie-break selection."""

from __future__ import annotations

import random
from collections import Counter

import pytest

from vmmprov.errors import NoEligibleHostError, ResourceNotFoundError
from vmmprov.models import HostCandidate, VMHost
from vmmprov.placement import (
    place_vm,
    rank_candidates,
    select_host,
    tie_band_size,
)


def _cands(*pairs) -> list[HostCandidate]:
    return [HostCandidate(name, rating) for name, rating in pairs]


def test_single_candidate_is_always_selected() -> None:
    cands = _cands(('A', 7))
    rng = random.Random(0)
    assert {select_host(cands, rng=rng) for _ in range(50)} == {'A'}


def test_unique_top_rating_wins_deterministically() -> None:
    cands = _cands(('A', 9), ('B', 8), ('C', 8), ('D', 0))
    rng = random.Random(1)
    assert {select_host(cands, rng=rng) for _ in range(100)} == {'A'}


def test_all_zero_ratings_raise() -> None:
    with pytest.raises(NoEligibleHostError, match='rated 0'):
        select_host(_cands(('A', 0), ('B', 0)))


def test_empty_candidates_raise() -> None:
    with pytest.raises(NoEligibleHostError):
        select_host([])


def test_tie_never_selects_outside_band() -> None:
    cands = _cands(('A', 10), ('B', 10), ('C', 5))
    rng = random.Random(2)
    picks = {select_host(cands, rng=rng) for _ in range(500)}
    assert picks == {'A', 'B'}


def test_tie_band_stops_at_first_lower_rating() -> None:
    assert tie_band_size(_cands(('A', 10), ('B', 10), ('C', 5))) == 2
    assert tie_band_size(_cands(('A', 10), ('B', 5), ('C', 10))) == 1
    assert tie_band_size(_cands(('A', 3), ('B', 3), ('C', 3))) == 3
    assert tie_band_size([]) == 0


def test_tie_selection_is_roughly_uniform() -> None:
    cands = _cands(('A', 4), ('B', 4), ('C', 4), ('D', 1))
    rng = random.Random(12345)
    trials = 6000
    counts = Counter(select_host(cands, rng=rng) for _ in range(trials))
    assert set(counts) == {'A', 'B', 'C'}
    expected = trials / 3
    for name in 'ABC':
        assert abs(counts[name] - expected) < expected * 0.1


def test_rank_candidates_sorts_descending_and_is_stable() -> None:
    ranked = rank_candidates(_cands(('A', 1), ('B', 5), ('C', 5), ('D', 0)))
    assert [c.name for c in ranked] == ['B', 'C', 'A', 'D']


class _RatingClient:
    def __init__(self, ratings, hosts) -> None:
        self.ratings = ratings
        self.hosts = hosts
        self.rating_calls: list[tuple] = []

    def get_host_ratings(self, host_group, template, disk_space_gb, vm_name):
        self.rating_calls.append((host_group, template, disk_space_gb, vm_name))
        return list(self.ratings)

    def get_host(self, name):
        if name not in self.hosts:
            raise ResourceNotFoundError('VM host', name)
        return self.hosts[name]


def test_place_vm_sorts_ratings_before_selecting() -> None:
    client = _RatingClient(
        _cands(('low', 2), ('high', 9)),
        {'high': VMHost('high', 'high.corp.local')},
    )
    host = place_vm(
        client,
        host_group='Prod',
        template='ws2022',
        disk_space_gb=60,
        vm_name='web01',
    )
    assert host.name == 'high'
    assert client.rating_calls == [('Prod', 'ws2022', 60, 'web01')]


def test_place_vm_unresolved_host_raises() -> None:
    client = _RatingClient(_cands(('ghost', 3)), {})
    with pytest.raises(ResourceNotFoundError, match='ghost'):
        place_vm(
            client,
            host_group='Prod',
            template='ws2022',
            disk_space_gb=10,
            vm_name='web01',
        )
