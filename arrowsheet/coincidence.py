"""Grouping arrows that sit (almost) on top of each other."""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence, Set

import numpy as np
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components
from scipy.spatial import KDTree

from .arrows import Arrow

logger = logging.getLogger(__name__)


def scan_clusters(arrows: Sequence[Arrow], tolerance: float) -> List[List[Arrow]]:
    """Group arrows closer than ``tolerance`` by a single first-occurrence scan.

    Each unclaimed arrow collects the later unclaimed arrows within
    ``tolerance`` of itself. The result is disjoint and every cluster has at
    least two members, but it is not transitive: if ``B`` is near both ``A``
    and ``C`` while ``A`` and ``C`` are far apart, whether ``C`` joins depends
    on the scan order.
    """

    clusters: List[List[Arrow]] = []
    if tolerance <= 0:
        return clusters
    claimed: Set[int] = set()
    for idx, first in enumerate(arrows):
        if first.id in claimed:
            continue
        group = [first]
        for other in arrows[idx + 1 :]:
            if other.id in claimed:
                continue
            if abs(other.position - first.position) < tolerance:
                group.append(other)
        if len(group) > 1:
            claimed.update(arrow.id for arrow in group)
            clusters.append(group)
    return clusters


def transitive_clusters(arrows: Sequence[Arrow], tolerance: float) -> List[List[Arrow]]:
    """Group arrows into connected components of the "closer than ``tolerance``" graph."""

    count = len(arrows)
    if count < 2 or tolerance <= 0:
        return []
    points = np.array([[arrow.position.real, arrow.position.imag] for arrow in arrows], dtype=float)
    tree = KDTree(points)
    # query_pairs is inclusive; nudge the radius to keep the comparison strict.
    pairs = tree.query_pairs(r=float(np.nextafter(tolerance, 0.0)), output_type="ndarray")
    if len(pairs) == 0:
        return []
    graph = coo_matrix((np.ones(len(pairs)), (pairs[:, 0], pairs[:, 1])), shape=(count, count))
    _, labels = connected_components(graph, directed=False)

    members: Dict[int, List[Arrow]] = {}
    for idx, component in enumerate(labels.tolist()):
        members.setdefault(component, []).append(arrows[idx])
    clusters = [group for group in members.values() if len(group) > 1]
    logger.debug("Found %d transitive cluster(s) among %d arrows", len(clusters), count)
    return clusters
