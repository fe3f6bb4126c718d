import pytest

matplotlib = pytest.importorskip("matplotlib")
matplotlib.use("Agg")

from ephefile.viz import plot_tiles_per_order


def test_bar_per_order():
    fig = plot_tiles_per_order({0: 3, 2: 5}, show=False)
    ax = fig.axes[0]
    assert [p.get_height() for p in ax.patches] == [3, 5]
    assert ax.get_xlabel() == "HEALPix order"
