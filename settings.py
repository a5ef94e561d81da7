import configparser

#--------------------------------------------
#General
GRAPH_FILE = 'data/channel_graph.json'
BLINDED_PATH_FILE = 'data/blinded_path.json'
PROCESSES = 1
TOP = 10

#Standardization: (mean, stddev) of each constraint field over the public graph.
# Tunable, they are not derived from the loaded graph.
STANDARDIZATION_FIELDS = ('path_length', 'fee_base_msat', 'htlc_minimum_msat', 'cltv_expiry_delta')
DEFAULT_STANDARDIZATION = {
    'path_length': (10.0, 10.0),
    'fee_base_msat': (2000.0, 1000.0),
    'htlc_minimum_msat': (1500.0, 500.0),
    'cltv_expiry_delta': (80.0, 20.0),
}
#---------------------------------------------------------------------------


def load_config(path='config.ini'):
    """Read the config file, falling back to the defaults above for anything missing."""
    config = configparser.ConfigParser()
    config['General'] = {
        'graph_file': GRAPH_FILE,
        'blinded_path_file': BLINDED_PATH_FILE,
        'processes': str(PROCESSES),
        'top': str(TOP),
    }
    config['Standardization'] = {}
    for name, (mean, stddev) in DEFAULT_STANDARDIZATION.items():
        config['Standardization'][name + '_mean'] = str(mean)
        config['Standardization'][name + '_stddev'] = str(stddev)
    config.read(path)  # a missing file leaves the defaults in place
    return config


def standardization_params(config=None):
    """Return {field: (mean, stddev)} for every constraint field."""
    if config is None:
        return dict(DEFAULT_STANDARDIZATION)
    section = config['Standardization']
    params = {}
    for name in STANDARDIZATION_FIELDS:
        mean, stddev = DEFAULT_STANDARDIZATION[name]
        params[name] = (float(section.get(name + '_mean', mean)),
                        float(section.get(name + '_stddev', stddev)))
    return params
