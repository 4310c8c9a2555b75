"""Utility functions."""

import os

import matplotlib.pyplot as plt


def format_pvalue(p):
    """Format p-value with appropriate precision."""
    if p < 0.001:
        return f"{p:.2e}"
    elif p < 0.01:
        return f"{p:.3f}"
    else:
        return f"{p:.2f}"


def print_section(title):
    """Print a ruled console banner."""
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


def save_figure(fig, name, output_dir):
    """
    Save a figure as PDF and PNG, then close it.

    Parameters
    ----------
    fig : matplotlib.figure.Figure
    name : str
        File name without extension
    output_dir : str

    Returns
    -------
    list of str
        Written file paths
    """
    os.makedirs(output_dir, exist_ok=True)
    paths = [os.path.join(output_dir, f'{name}.{ext}') for ext in ('pdf', 'png')]
    for path in paths:
        fig.savefig(path, dpi=300, bbox_inches='tight')
    plt.close(fig)
    print(f"{name} saved to {output_dir}/")
    return paths
