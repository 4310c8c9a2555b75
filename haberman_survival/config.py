"""Configuration and style settings."""

import matplotlib.pyplot as plt


def set_publication_style():
    """Apply journal-style matplotlib parameters."""
    plt.rcParams['font.family'] = 'sans-serif'
    plt.rcParams['font.sans-serif'] = ['DejaVu Sans']
    plt.rcParams['font.size'] = 8
    plt.rcParams['axes.linewidth'] = 0.5
    plt.rcParams['xtick.major.width'] = 0.5
    plt.rcParams['ytick.major.width'] = 0.5
    plt.rcParams['patch.linewidth'] = 0.5
    plt.rcParams['text.color'] = '#000000'
    plt.rcParams['axes.labelcolor'] = '#000000'
    plt.rcParams['axes.edgecolor'] = '#000000'
    plt.rcParams['xtick.color'] = '#000000'
    plt.rcParams['ytick.color'] = '#000000'


# Paths
DATA_PATH = 'Data/Haberman.csv'
FIGURE_DIR = 'Figures'
CSV_SEPARATOR = ';'

# Columns
RAW_COLUMNS = ['Age', 'Year', 'Nodes', 'Survival_Status']
TIME_COL = 'Year'
EVENT_COL = 'Event'
STATUS_DIED = 2

# Age bands, right-closed: (20, 40], (40, 60], (60, 90]
AGE_BINS = [20, 40, 60, 90]
AGE_LABELS = ['20-40', '41-60', '61-90']
AGE_RANGE = (20, 90)
NODES_RANGE = (0, 30)

NODES_THRESHOLD = 5
NODES_LOW = 'Faible (≤5)'
NODES_HIGH = 'Élevé (>5)'

COLLINEARITY_THRESHOLD = 0.7

# Cox model
COX_COVARIATES = ['Age', 'Nodes']
COX_MAX_ITER = 1000

EXAMPLE_PROFILES = {
    '45 ans, 2 ganglions': {'Age': 45, 'Nodes': 2},
    '65 ans, 10 ganglions': {'Age': 65, 'Nodes': 10},
}

# Axis labels
XLABEL = 'Année après chirurgie'
YLABEL = 'Probabilité de survie'

# Color schemes
COLORS = {
    'blue': '#0173B2',
    'gray': '#999999',
    'black': '#000000'
}

PALETTES = {
    'lancet': ['#00468B', '#ED0000', '#42B540', '#0099B4', '#925E9F',
               '#FDAF91', '#AD002A', '#ADB6B6', '#1B1919'],
    'jco': ['#0073C2', '#EFC000', '#868686', '#CD534C', '#7AA6DC',
            '#003C67', '#8F7700', '#3B3B3B', '#A73030', '#4A6990'],
    'npg': ['#E64B35', '#4DBBD5', '#00A087', '#3C5488', '#F39B7F',
            '#8491B4', '#91D1C2', '#DC0000', '#7E6148', '#B09C85'],
}
