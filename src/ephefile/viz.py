from __future__ import annotations
from typing import Mapping


def plot_tiles_per_order(tiles_per_order: Mapping[int, int], *, show: bool = True):
    """Minimal bar chart of tile counts per HEALPix order for sanity-checking."""
    import matplotlib.pyplot as plt
    orders = sorted(tiles_per_order)
    counts = [tiles_per_order[o] for o in orders]
    fig, ax = plt.subplots()
    ax.bar([str(o) for o in orders], counts)
    ax.set_xlabel("HEALPix order")
    ax.set_ylabel("Tiles")
    ax.set_title("EPHE tiles per order (sanity plot)")
    if show:
        plt.show()
    return fig
