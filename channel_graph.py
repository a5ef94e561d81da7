import json

import networkx as nx
from ordered_set import OrderedSet

NODE_FIELDS = ('last_update', 'alias', 'addresses', 'color', 'features', 'custom_records')
EDGE_FIELDS = ('chan_point', 'last_update', 'capacity', 'node1_pub', 'node2_pub', 'custom_records')


def make_graph(graph_json, G=None):
    """
    Build the channel graph from a describegraph style document.

    Every channel becomes two directed edges keyed by channel_id. The edge
    u -> v carries the policy of v, the one applied to traffic arriving
    from u. Edge endpoints missing from the node list are still added.
    """
    if G is None:
        G = nx.MultiDiGraph()
    nodes = graph_json.get('nodes', [])
    edges = graph_json.get('edges', [])

    known = {node['pub_key']: node for node in nodes}
    nodes_pubkey = OrderedSet([node['pub_key'] for node in nodes] +
                              [pub for edge in edges for pub in (edge['node1_pub'], edge['node2_pub'])])
    for pubkey in nodes_pubkey:
        attrs = {k: known[pubkey].get(k) for k in NODE_FIELDS} if pubkey in known else {}
        G.add_node(pubkey, **attrs)

    for edge in edges:
        u = edge['node1_pub']
        v = edge['node2_pub']
        channel_id = edge['channel_id']
        attrs = {k: edge.get(k) for k in EDGE_FIELDS}
        G.add_edge(u, v, key=channel_id, channel_id=channel_id, policy=edge['node2_policy'], **attrs)
        G.add_edge(v, u, key=channel_id, channel_id=channel_id, policy=edge['node1_policy'], **attrs)
    return G


def read_channel_graph(file_path):
    with open(file_path) as f:
        return make_graph(json.load(f))


def channels(G):
    """Channel ids in load order, each listed once."""
    return list(OrderedSet(k for _, _, k in G.edges(keys=True)))
