import argparse
import datetime
import logging
import sys

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import pandas as pd

from blinded_path import read_blinded_path
from channel_graph import channels, read_channel_graph
from constraints import MalformedPolicyError
from receiver_probability import get_most_probable_receiver
from route_search import find_end_points, get_final_routes
from settings import load_config, standardization_params

logger = logging.getLogger("run_analysis")


def print_blinded_path(blinded_path):
    print(f"Introduction Node: {blinded_path.introduction_node}")
    print(f"Blinded Nodes: {list(blinded_path.blinded_nodes)}")
    print(f"Fee Base (msat): {blinded_path.fee_base_msat}")
    print(f"Fee Proportional Millionths: {blinded_path.fee_proportional_millionths}")
    print(f"HTLC Minimum (msat): {blinded_path.htlc_minimum_msat}")
    print(f"CLTV Expiry Delta: {blinded_path.cltv_expiry_delta}")
    print(f"Max CLTV Expiry: {blinded_path.max_cltv_expiry}")


def print_ranking(title, ranking, top):
    print("\n" + "="*80)
    print(title)
    print("="*80)
    if not ranking:
        print("No candidate receiver found")
        return
    for node, value in ranking[:top]:
        print(f"{node}  {value}")


def plot_ranking(ranking, top, filename):
    nodes = [node[:16] for node, _ in ranking[:top]]
    scores = [score for _, score in ranking[:top]]

    plt.figure(figsize=(10, 5))
    plt.bar(nodes, scores)
    plt.xlabel('Receiver')
    plt.ylabel('Probability density')
    plt.title('Most probable receivers of the blinded path')
    plt.xticks(rotation=45, ha='right')
    plt.grid(True, axis='y')
    plt.tight_layout()
    plt.savefig(filename)
    plt.close()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Guess the receiver hidden behind a blinded path")
    parser.add_argument("--config", "-c", default="config.ini", help="Path to config.ini")
    parser.add_argument("--graph", "-g", help="Channel graph JSON (describegraph output)")
    parser.add_argument("--blinded-path", "-b", help="Blinded path JSON")
    parser.add_argument("--top", "-n", type=int, help="Number of candidates to print")
    parser.add_argument("--processes", "-p", type=int, help="Worker processes for the route search")
    parser.add_argument("--output", "-o", help="Write the receiver ranking to this CSV file")
    parser.add_argument("--plot", help="Save a bar chart of the top receivers to this file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    config = load_config(args.config)
    graph_file = args.graph or config['General']['graph_file']
    blinded_path_file = args.blinded_path or config['General']['blinded_path_file']
    top = args.top if args.top is not None else int(config['General']['top'])
    processes = args.processes if args.processes is not None else int(config['General']['processes'])
    params = standardization_params(config)

    startTime = datetime.datetime.now()
    try:
        blinded_path = read_blinded_path(blinded_path_file)
        G = read_channel_graph(graph_file)
    except (OSError, ValueError, KeyError, TypeError) as e:
        print(f"Error reading file: {e}", file=sys.stderr)
        return 1
    logger.info(f"Loaded {G.number_of_nodes()} nodes and {len(channels(G))} channels from {graph_file}")

    print_blinded_path(blinded_path)

    try:
        routes = get_final_routes(G, blinded_path, processes=processes)
    except MalformedPolicyError as e:
        print(f"Error in channel graph: {e}", file=sys.stderr)
        return 1

    print_ranking("MOST FREQUENT END POINTS", find_end_points(routes), top)
    ranking = get_most_probable_receiver(routes, blinded_path, params)
    print_ranking("MOST PROBABLE RECEIVERS", ranking, top)

    if args.output:
        pd.DataFrame(ranking, columns=['receiver', 'probability']).to_csv(args.output, index=False)
        logger.info(f"Ranking written to {args.output}")
    if args.plot and ranking:
        plot_ranking(ranking, top, args.plot)
        logger.info(f"Plot saved to {args.plot}")

    print(datetime.datetime.now() - startTime)
    return 0


if __name__ == '__main__':
    sys.exit(main())
