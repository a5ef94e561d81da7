import logging
import multiprocessing as mp
from dataclasses import dataclass
from typing import Tuple

import pandas as pd

from constraints import Constraints

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Route:
    """Nodes from the introduction node onwards, and the channels joining them."""
    nodes: Tuple[str, ...]                # A, B, C
    channel_ids: Tuple[str, ...] = ()     # channel A-B, channel B-C
    constraints: Constraints = Constraints()

    @property
    def receiver(self):
        return self.nodes[-1]

    def create_new_route(self, next_node, next_channel_id, next_constraints):
        return Route(
            nodes=self.nodes + (next_node,),
            channel_ids=self.channel_ids + (next_channel_id,),
            constraints=self.constraints + next_constraints,
        )


def neighbour_policies(G, node_pub):
    """(next_node, channel_id, policy of next_node) for every channel of node_pub."""
    if node_pub not in G:
        return []
    return [(v, key, d['policy']) for _, v, key, d in G.out_edges(node_pub, keys=True, data=True)]


def next_good_routes(current_route, G, real_constraints):
    next_routes = []
    for next_node, next_channel_id, next_channel_policy in neighbour_policies(G, current_route.receiver):
        # 1. no node twice in a route
        if next_node in current_route.nodes:
            continue

        # 2. the extended route still fits the advertised constraints
        next_channel_constraints = Constraints.from_node_policy(next_channel_policy)
        sum_constraints = current_route.constraints + next_channel_constraints
        if sum_constraints.exceeds(real_constraints):
            continue
        next_routes.append(current_route.create_new_route(next_node, next_channel_id, next_channel_constraints))
    return next_routes


def get_good_routes(first_route, G, real_constraints):
    """All terminal routes below first_route, depth first."""
    final_routes = []
    stack = [first_route]
    while stack:
        cur_route = stack.pop()
        next_routes = next_good_routes(cur_route, G, real_constraints)
        if not next_routes:
            # nothing left to extend, the route is complete
            final_routes.append(cur_route)
            continue
        stack.extend(reversed(next_routes))
    return final_routes


def get_final_routes(G, blinded_path, processes=None):
    """
    Enumerate every route from the introduction node whose accumulated
    constraints never exceed the ones the blinded path advertises.

    Only terminal routes (no valid extension left) are returned, in no
    particular order. With processes > 1 the branches leaving the
    introduction node are searched in a process pool.
    """
    real_constraints = blinded_path.constraints()
    first_route = Route(nodes=(blinded_path.introduction_node,))

    if not processes or processes <= 1:
        final_routes = get_good_routes(first_route, G, real_constraints)
    else:
        branches = next_good_routes(first_route, G, real_constraints)
        if not branches:
            final_routes = [first_route]
        else:
            work = [(branch, G, real_constraints) for branch in branches]
            pool = mp.Pool(processes=processes)
            try:
                results = pool.starmap(get_good_routes, work)
            finally:
                pool.close()
                pool.join()
            final_routes = [route for routes in results for route in routes]

    logger.info(f"Found {len(final_routes)} terminal routes from {blinded_path.introduction_node}")
    return final_routes


def find_end_points(routes):
    """(node, number of routes ending there), most frequent first."""
    if not routes:
        return []
    receivers = pd.Series([route.receiver for route in routes], name='receiver')
    counts = receivers.groupby(receivers, sort=False).size()
    counts = counts.sort_values(ascending=False, kind='stable')
    return [(node, int(count)) for node, count in counts.items()]
