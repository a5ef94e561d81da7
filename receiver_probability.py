"""
Rank the candidate receivers of a blinded path.

Each terminal route is turned into a multivariate normal centred on its
standardized constraints. The density of the standardized advertised
constraints under that distribution is the route's score, and a receiver's
score is the sum over every route ending at it.
"""
import logging

import numpy as np
import pandas as pd
from scipy.stats import multivariate_normal

from settings import STANDARDIZATION_FIELDS, standardization_params

logger = logging.getLogger(__name__)

DIMENSIONS = len(STANDARDIZATION_FIELDS)


def create_distribution(mean_vector):
    mean_vector = np.asarray(mean_vector, dtype=float)
    if mean_vector.shape != (DIMENSIONS,) or not np.all(np.isfinite(mean_vector)):
        raise ValueError(f"invalid mean vector {mean_vector!r}")
    # fields assumed independent, unit variance after standardization
    covariance_matrix = np.identity(DIMENSIONS)
    return multivariate_normal(mean=mean_vector, cov=covariance_matrix)


def get_route_probability(route, real_constraints, params=None):
    if params is None:
        params = standardization_params()
    expected_constraints = route.constraints.standardize(params)
    observed = real_constraints.standardize(params)
    try:
        mv_normal = create_distribution(expected_constraints)
    except (ValueError, np.linalg.LinAlgError) as e:
        logger.debug(f"No distribution for route {route.nodes}: {e}")
        return 0.0
    return float(mv_normal.pdf(observed))


def get_most_probable_receiver(routes, blinded_path, params=None):
    """(node, summed density), most probable first. Ties keep discovery order."""
    if not routes:
        return []
    real_constraints = blinded_path.constraints()
    df = pd.DataFrame({
        'receiver': [route.receiver for route in routes],
        'probability': [get_route_probability(route, real_constraints, params) for route in routes],
    })
    scores = df.groupby('receiver', sort=False)['probability'].sum()
    scores = scores.sort_values(ascending=False, kind='stable')
    return [(node, float(score)) for node, score in scores.items()]
