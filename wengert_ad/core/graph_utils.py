# wengert_ad/core/graph_utils.py
"""
Tape inspection helpers.
"""

import logging
from collections import Counter
from typing import Dict

from .tape import Tape

logger = logging.getLogger(__name__)


def graph_summary(tape: Tape, log: bool = False) -> Dict:
    """
    Summarise the graph recorded on `tape`.

    Args:
        tape: tape to inspect
        log: also log the summary at INFO level

    Returns:
        dict with nodes, edges, max_fan_in, max_fan_out, ops (count per
        operation kind) and elementwise_only
    """
    nodes = tape.nodes
    fan_ins = [len(node.dependencies) for node in nodes]
    fan_outs = [0] * len(nodes)
    for node in nodes:
        for dep in node.dependencies:
            fan_outs[dep] += 1
    ops = Counter(node.kind.value for node in nodes)

    summary = {
        'nodes': len(nodes),
        'edges': sum(fan_ins),
        'max_fan_in': max(fan_ins, default=0),
        'max_fan_out': max(fan_outs, default=0),
        'ops': dict(ops),
        'elementwise_only': tape.elementwise_only,
    }

    if log:
        logger.info("graph: %d nodes, %d edges, max fan-in %d, max fan-out %d, elementwise_only=%s",
                    summary['nodes'], summary['edges'], summary['max_fan_in'],
                    summary['max_fan_out'], summary['elementwise_only'])
        for op, count in ops.most_common():
            logger.info("  %-16s %6d", op, count)
    return summary
