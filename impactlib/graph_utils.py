#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ****************************************************************************************************************************************************
# * BSD 3-Clause License
# *
# * Copyright (c) 2025, Mana Battery
# * All rights reserved.
# *
# * Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
# *
# * 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
# * 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
# *    documentation and/or other materials provided with the distribution.
# * 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
# *    software without specific prior written permission.
# *
# * THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
# * THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
# * CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
# * PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# * LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# * EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
# ****************************************************************************************************************************************************
"""Reverse-dependency indexing and affected-unit closure over the unit import graph."""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

import networkx as nx

from .ignore_utils import IgnoreFilter

logger = logging.getLogger(__name__)

# Ordered (import path, directly imported import paths) pairs as produced by the scanner
ImportRelation = Iterable[Tuple[str, Sequence[str]]]


def filter_import_relation(relation: ImportRelation, ignore_filter: Optional[IgnoreFilter] = None) -> List[Tuple[str, List[str]]]:
    """Drop every unit whose import path is ignored, keeping scan order.

    Imports of retained units are kept as recorded; an ignored import target
    simply never gets reached during closure.
    """
    kept: List[Tuple[str, List[str]]] = []
    dropped = 0
    for import_path, imports in relation:
        if ignore_filter is not None and ignore_filter.is_unit_ignored(import_path):
            dropped += 1
            continue
        kept.append((import_path, list(imports)))

    if dropped:
        logger.debug("Dropped %s ignored units from the import relation", dropped)
    return kept


def build_reverse_dependency_index(relation: ImportRelation, ignore_filter: Optional[IgnoreFilter] = None) -> Dict[str, List[str]]:
    """Build the reverse-dependency index: import path -> units importing it.

    Importers are listed in the order the relation records the edges.

    Args:
        relation: Ordered (import_path, imports) pairs
        ignore_filter: Units whose import path matches are left out entirely

    Returns:
        Dictionary mapping each imported path to its ordered importers

    Example:
        >>> index = build_reverse_dependency_index([("b", ["a"]), ("c", ["b", "a"])])
        >>> index["a"]
        ['b', 'c']
    """
    index: Dict[str, List[str]] = {}
    edge_count = 0

    for import_path, imports in filter_import_relation(relation, ignore_filter):
        for imported in imports:
            index.setdefault(imported, []).append(import_path)
            edge_count += 1

    logger.info("Indexed %s import edges over %s imported units", edge_count, len(index))
    return index


def compute_affected_units(seeds: Iterable[str], reverse_index: Dict[str, List[str]], ignore_filter: Optional[IgnoreFilter] = None) -> List[str]:
    """Close the seed units over "is imported by".

    Propagation runs in rounds. Each round collects the importers of the units
    added by the previous round, in the order those units sit in the result
    and, per unit, in index order. Importers already present or already staged
    in the round are skipped, as are ignored importers, so nothing is reached
    through an ignored unit. Staged units are appended when the round ends; a
    round that stages nothing ends the closure.

    Units added before the previous round cannot contribute anything new, so
    walking only the last round's additions yields the same sequence as
    rescanning the whole result every round.

    Args:
        seeds: Units directly containing a change, in change order
        reverse_index: Mapping from import path to its importers
        ignore_filter: Importers matching it are never added

    Returns:
        Affected import paths: seeds first, then each round's additions
    """
    affected: List[str] = []
    members: Set[str] = set()
    for seed in seeds:
        if seed not in members:
            members.add(seed)
            affected.append(seed)

    seed_count = len(affected)
    frontier = list(affected)
    round_number = 0
    while frontier:
        round_number += 1
        staged: List[str] = []
        for unit in frontier:
            for importer in reverse_index.get(unit, ()):
                if importer in members:
                    continue
                if ignore_filter is not None and ignore_filter.is_unit_ignored(importer):
                    continue
                members.add(importer)
                staged.append(importer)

        if staged:
            logger.debug("Round %s added %s units", round_number, len(staged))
        affected.extend(staged)
        frontier = staged

    logger.info("%s seed units affect %s units", seed_count, len(affected))
    return affected


def is_closed(affected: Sequence[str], reverse_index: Dict[str, List[str]], ignore_filter: Optional[IgnoreFilter] = None) -> bool:
    """Check that no further closure round would add a unit (fixed point)."""
    members = set(affected)
    for unit in affected:
        for importer in reverse_index.get(unit, ()):
            if importer in members:
                continue
            if ignore_filter is not None and ignore_filter.is_unit_ignored(importer):
                continue
            return False
    return True


def build_import_graph(relation: ImportRelation, ignore_filter: Optional[IgnoreFilter] = None) -> "nx.DiGraph[Any]":
    """Build a NetworkX directed graph with an edge importer -> imported unit.

    Args:
        relation: Ordered (import_path, imports) pairs
        ignore_filter: Units whose import path matches are left out

    Returns:
        NetworkX DiGraph
    """
    G: nx.DiGraph[str] = nx.DiGraph()

    for import_path, imports in filter_import_relation(relation, ignore_filter):
        G.add_node(import_path)
        G.add_edges_from((import_path, imported) for imported in imports)

    logger.debug("Import graph: %s nodes, %s edges", G.number_of_nodes(), G.number_of_edges())
    return G


def export_graph_to_graphml(graph: "nx.DiGraph[Any]", output_path: str, seeds: Sequence[str] = (), affected: Sequence[str] = ()) -> bool:
    """Export the import graph to GraphML with seed/affected node attributes.

    Args:
        graph: Import graph from build_import_graph
        output_path: Path to the output GraphML file
        seeds: Units directly containing a change
        affected: Affected units (seeds included)

    Returns:
        True if export succeeded
    """
    seed_set = set(seeds)
    affected_set = set(affected)

    export_graph = graph.copy()
    # Seeds may have no scanned counterpart (e.g. deleted packages)
    export_graph.add_nodes_from(seed_set)
    for node in export_graph.nodes():
        export_graph.nodes[node]["seed"] = node in seed_set
        export_graph.nodes[node]["affected"] = node in affected_set

    try:
        nx.write_graphml(export_graph, output_path)
        logger.info("Exported import graph to %s", output_path)
        return True
    except (OSError, nx.NetworkXError) as e:
        logger.error("Failed to export graph to GraphML: %s", e)
        return False
