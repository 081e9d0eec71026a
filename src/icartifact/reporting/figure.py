"""Three-panel figure for the excessive component check.

Top row: absolute weights of every component at the target sensor with the
extreme component marked. Bottom row: scalp map of that component and of the
Gaussian template it was matched against.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Union

import matplotlib

# Use non-interactive backend for headless environments
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import mne
import numpy as np
from matplotlib.gridspec import GridSpec

from icartifact.detection.types import (
    DEFAULT_TARGET_LABEL,
    FIGURE_SUFFIX,
    ComponentAnalysis,
    SensorLayout,
)
from icartifact.utils.logging import message

# MNE's default head radius in metres; sensors are scaled onto this circle
HEAD_RADIUS = 0.095


@dataclass
class DetectionLayoutSpec:
    """Container describing the figure and axes produced by the layout helper."""

    fig: plt.Figure
    ax_weights: plt.Axes
    ax_component: plt.Axes
    ax_template: plt.Axes
    main_title: str


def build_detection_layout(
    component_idx: int, target_label: str = DEFAULT_TARGET_LABEL
) -> DetectionLayoutSpec:
    """Create the Matplotlib layout used by the detection figure.

    Parameters
    ----------
    component_idx:
        Zero-based index of the extreme component, used in the title.
    target_label:
        Sensor the check was run on.
    """

    fig = plt.figure(figsize=(9, 9), dpi=120)
    main_title = f"Excessive ICA Component Analysis: IC{component_idx} at {target_label}"

    gs = GridSpec(
        2,
        2,
        figure=fig,
        height_ratios=[0.8, 1.0],
        hspace=0.45,
        wspace=0.3,
        left=0.08,
        right=0.95,
        top=0.9,
        bottom=0.05,
    )

    return DetectionLayoutSpec(
        fig=fig,
        ax_weights=fig.add_subplot(gs[0, :]),
        ax_component=fig.add_subplot(gs[1, 0]),
        ax_template=fig.add_subplot(gs[1, 1]),
        main_title=main_title,
    )


@contextmanager
def figure_surface(
    component_idx: int, target_label: str = DEFAULT_TARGET_LABEL
) -> Iterator[DetectionLayoutSpec]:
    """Yield a fresh detection layout and close its figure on exit."""

    spec = build_detection_layout(component_idx, target_label)
    try:
        yield spec
    finally:
        plt.close(spec.fig)


def planar_to_head_positions(layout: SensorLayout) -> np.ndarray:
    """Map EEGLAB planar coordinates onto MNE's 2D head frame.

    EEGLAB puts +X toward the nose and +Y toward the left ear; MNE plots +x
    to the right and +y to the front. Positions are scaled so the outermost
    sensor lies on the head outline.
    """

    positions = layout.positions
    head = np.column_stack([-positions[:, 1], positions[:, 0]])
    radius = float(np.max(np.hypot(head[:, 0], head[:, 1]))) if len(head) else 0.0
    if radius > 0:
        head = head * (HEAD_RADIUS / radius)
    return head


def figure_filename(source_id: str) -> str:
    """Figure file name derived from the recording identifier."""

    return f"{Path(source_id).stem}{FIGURE_SUFFIX}"


def _plot_weights(ax: plt.Axes, analysis: ComponentAnalysis) -> None:
    components = np.arange(len(analysis.abs_weights))
    ax.bar(components, analysis.abs_weights, color=(0.2, 0.2, 0.8))
    ax.plot(
        analysis.max_index,
        analysis.abs_weights[analysis.max_index],
        "r*",
        markersize=10,
    )
    ax.set_xlabel("Component")
    ax.set_ylabel(f"Absolute Weight at {analysis.target_label}")
    ax.set_title(f"ICA Weights at {analysis.target_label} (Max IC {analysis.max_index})")
    ax.grid(True)


def has_planar_extent(pos: np.ndarray) -> bool:
    """Whether the sensors span a plane, which topomap interpolation needs."""

    if len(pos) < 3:
        return False
    return int(np.linalg.matrix_rank(pos - pos.mean(axis=0))) >= 2


def _plot_unavailable(ax: plt.Axes, title: str) -> None:
    ax.text(
        0.5,
        0.5,
        "topography unavailable\n(degenerate layout)",
        ha="center",
        va="center",
        transform=ax.transAxes,
        color="gray",
    )
    ax.set_axis_off()
    ax.set_title(title)


def _plot_field(ax: plt.Axes, values: np.ndarray, pos: np.ndarray, title: str) -> None:
    mne.viz.plot_topomap(
        values,
        pos,
        axes=ax,
        show=False,
        sensors=True,
        contours=0,
        cmap="RdBu_r",
        sphere=(0.0, 0.0, 0.0, HEAD_RADIUS),
    )
    ax.set_title(title)
    ax.set_aspect("equal")


def render_detection_figure(
    analysis: ComponentAnalysis,
    layout: SensorLayout,
    source_id: str,
    output_dir: Optional[Union[str, Path]] = None,
) -> Path:
    """Draw and save the detection figure.

    Parameters
    ----------
    analysis : ComponentAnalysis
        Output of :func:`icartifact.detection.analyze`.
    layout : SensorLayout
        Layout the analysis was computed on.
    source_id : str
        Recording identifier; its stem names the PNG file.
    output_dir : path-like, optional
        Destination directory, created if missing. Defaults to the current
        working directory.

    Returns
    -------
    Path
        Location of the saved PNG.
    """

    out_dir = Path(output_dir) if output_dir is not None else Path.cwd()
    out_dir.mkdir(parents=True, exist_ok=True)
    fig_file = out_dir / figure_filename(source_id)

    pos = planar_to_head_positions(layout)
    draw_maps = has_planar_extent(pos)
    if not draw_maps:
        message(
            "warning",
            f"Sensor positions for {source_id} do not span a plane; "
            "scalp maps are left out of the figure.",
        )

    component_title = (
        f"Component {analysis.max_index} "
        f"(z={analysis.max_z:.2f}, corr={analysis.spatial_correlation:.2f})"
    )
    template_title = f"Gaussian Template Centered at {analysis.target_label}"
    try:
        with figure_surface(analysis.max_index, analysis.target_label) as spec:
            _plot_weights(spec.ax_weights, analysis)
            if draw_maps:
                _plot_field(spec.ax_component, analysis.topography, pos, component_title)
                _plot_field(spec.ax_template, analysis.template, pos, template_title)
            else:
                _plot_unavailable(spec.ax_component, component_title)
                _plot_unavailable(spec.ax_template, template_title)
            spec.fig.suptitle(spec.main_title, fontsize=13)
            spec.fig.savefig(fig_file, format="png")
    except Exception as e:
        raise RuntimeError(f"Failed to render detection figure for {source_id}: {str(e)}") from e

    message("success", f"✓ Saved detection figure to: {fig_file}")
    return fig_file


class FigureRenderer:
    """Renderer callable passed to :func:`icartifact.detection.detect`."""

    def __init__(self, output_dir: Optional[Union[str, Path]] = None):
        self.output_dir = output_dir

    def __call__(
        self, analysis: ComponentAnalysis, layout: SensorLayout, source_id: str
    ) -> Path:
        return render_detection_figure(analysis, layout, source_id, self.output_dir)
