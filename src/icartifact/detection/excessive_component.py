"""Detection of an ICA component that dominates a single sensor.

The check looks at the absolute mixing weights of every component at one
target sensor, z-scores them, and picks the most extreme component. The whole
scalp map of that component is then correlated with a narrow Gaussian bump
centred on the target sensor: a high correlation means the component is
localised at that sensor, which is typical for a bad electrode rather than
for brain activity.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional, Tuple, Union

import numpy as np

from icartifact.detection.types import (
    DEFAULT_TARGET_LABEL,
    DEFAULT_THRESHOLD,
    ComponentAnalysis,
    DetectionConfig,
    DetectionResult,
    SensorLayout,
    as_mixing_matrix,
)
from icartifact.errors import MalformedInputError, NotFoundError
from icartifact.utils.logging import message

# Substituted for a zero spread so the computation stays defined. This is a
# guard for degenerate input, not a meaningful statistic.
EPSILON = float(np.finfo(float).eps)

# Template width as a fraction of the largest sensor distance from the target
TEMPLATE_WIDTH_FRACTION = 10.0

Renderer = Callable[[ComponentAnalysis, SensorLayout, str], Path]


def find_target_sensor(layout: SensorLayout, label: str) -> int:
    """Return the index of the first sensor labelled ``label``.

    Raises
    ------
    NotFoundError
        If no sensor carries the label.
    """

    matches = [idx for idx, sensor in enumerate(layout) if sensor.label == label]
    if not matches:
        raise NotFoundError(f"Electrode {label} not found.")
    if len(matches) > 1:
        message(
            "warning",
            f"Electrode {label} appears {len(matches)} times in the layout; "
            f"using the first occurrence (index {matches[0]}).",
        )
    return matches[0]


def compute_zscores(
    abs_weights: np.ndarray, ddof: int = 0
) -> Tuple[np.ndarray, float, bool]:
    """Z-score a weight vector.

    Returns the z-scores, the standard deviation used, and whether the
    epsilon substitution for a zero spread was applied.
    """

    weights = np.asarray(abs_weights, dtype=float)

    # Zero spread scores against the data itself; np.mean is not exact
    degenerate = bool(np.ptp(weights) == 0)
    if degenerate:
        mu = float(weights[0])
        sigma = EPSILON
    else:
        mu = float(np.mean(weights))
        sigma = float(np.std(weights, ddof=ddof))

    return (weights - mu) / sigma, sigma, degenerate


def gaussian_template(
    layout: SensorLayout, target_index: int
) -> Tuple[np.ndarray, float, bool]:
    """Gaussian bump over the layout centred on the target sensor.

    The width is one tenth of the largest planar distance from the target.
    Returns the template, its sigma, and whether the epsilon substitution
    for coincident sensors was applied.
    """

    positions = layout.positions
    distances = np.hypot(*(positions - positions[target_index]).T)

    sigma = float(distances.max()) / TEMPLATE_WIDTH_FRACTION
    degenerate = not sigma > 0
    if degenerate:
        sigma = EPSILON

    template = np.exp(-(distances**2) / (2 * sigma**2))
    return template, sigma, degenerate


def spatial_correlation(topography: np.ndarray, template: np.ndarray) -> float:
    """Pearson correlation between two fields sampled at the same sensors.

    Returns ``nan`` when either field is constant.
    """

    a = np.asarray(topography, dtype=float)
    b = np.asarray(template, dtype=float)
    if a.shape != b.shape:
        raise MalformedInputError(
            f"Spatial fields differ in length: {a.shape} vs {b.shape}"
        )

    a = a - a.mean()
    b = b - b.mean()
    denominator = np.sqrt(np.dot(a, a) * np.dot(b, b))
    if denominator == 0:
        return float("nan")
    # Rounding can push |r| a hair above 1
    return float(np.clip(np.dot(a, b) / denominator, -1.0, 1.0))


def analyze(
    layout: SensorLayout,
    mixing: Any,
    config: Optional[DetectionConfig] = None,
) -> ComponentAnalysis:
    """Run the statistical and spatial analysis without packaging a result.

    Parameters
    ----------
    layout : SensorLayout
        Sensor labels and planar coordinates.
    mixing : array-like, shape (n_sensors, n_components)
        ICA mixing matrix (EEGLAB ``icawinv``).
    config : DetectionConfig, optional
        Target label and statistics options. Defaults to ``DetectionConfig()``.

    Returns
    -------
    ComponentAnalysis
        Weights, z-scores, extreme component, both spatial fields and the
        correlation between them.

    Raises
    ------
    MalformedInputError
        If the mixing matrix does not match the layout.
    NotFoundError
        If the target sensor is not in the layout.
    """

    config = config or DetectionConfig()
    if len(layout) == 0:
        raise MalformedInputError("Sensor layout is empty.")
    matrix = as_mixing_matrix(mixing, len(layout))

    target_index = find_target_sensor(layout, config.target_label)
    abs_weights = np.abs(matrix[target_index, :])

    degenerate = []
    z_scores, sigma, flat_weights = compute_zscores(abs_weights, ddof=config.ddof)
    if flat_weights:
        degenerate.append("zero_weight_variance")
        message(
            "warning",
            f"All components contribute equally to {config.target_label}; "
            "z-scores use an epsilon standard deviation.",
        )

    # argmax returns the first index on ties
    max_index = int(np.argmax(z_scores))
    max_z = float(z_scores[max_index])

    template, template_sigma, coincident = gaussian_template(layout, target_index)
    if coincident:
        degenerate.append("zero_sensor_distance")
        message(
            "warning",
            f"All sensors coincide with {config.target_label}; "
            "template uses an epsilon width.",
        )

    topography = matrix[:, max_index].copy()
    correlation = spatial_correlation(topography, template)
    if np.isnan(correlation):
        degenerate.append("undefined_correlation")
        message("warning", "Spatial correlation is undefined for a constant field.")

    message(
        "values",
        "{label}: mu={mu:.4f} sigma={sigma:.4f} max_z={max_z:.3f} IC{idx} corr={corr:.3f}",
        label=lambda: config.target_label,
        mu=lambda: float(abs_weights.mean()),
        sigma=lambda: sigma,
        max_z=lambda: max_z,
        idx=lambda: max_index,
        corr=lambda: correlation,
    )

    return ComponentAnalysis(
        target_label=config.target_label,
        target_index=target_index,
        abs_weights=abs_weights,
        z_scores=z_scores,
        max_z=max_z,
        max_index=max_index,
        topography=topography,
        template=template,
        template_sigma=template_sigma,
        spatial_correlation=correlation,
        degenerate=tuple(degenerate),
    )


def detect(
    layout: SensorLayout,
    mixing: Any,
    source_id: str,
    config: Optional[DetectionConfig] = None,
    renderer: Optional[Renderer] = None,
) -> DetectionResult:
    """Classify one decomposition as containing an excessive component or not.

    The recording is flagged when the largest z-score of the absolute weights
    at the target sensor is strictly greater than ``config.threshold``.

    Parameters
    ----------
    layout : SensorLayout
        Sensor labels and planar coordinates.
    mixing : array-like, shape (n_sensors, n_components)
        ICA mixing matrix, rows in layout order.
    source_id : str
        Identifier of the recording, usually its file name.
    config : DetectionConfig, optional
        Threshold and target sensor. Defaults to ``DetectionConfig()``.
    renderer : callable, optional
        Called as ``renderer(analysis, layout, source_id)`` once the analysis
        has succeeded; the returned path is stored as ``figure_file``.

    Returns
    -------
    DetectionResult
        The report record. ``result.analysis`` carries the spatial fields.

    Examples
    --------
    >>> result = detect(layout, ica_winv, "sub-01.set")
    >>> result.excessive, result.max_component
    """

    config = config or DetectionConfig()
    analysis = analyze(layout, mixing, config)
    excessive = bool(analysis.max_z > config.threshold)

    figure_file = None
    if renderer is not None:
        figure_file = renderer(analysis, layout, source_id)

    level = "warning" if excessive else "info"
    message(
        level,
        f"{source_id}: IC{analysis.max_index} z={analysis.max_z:.2f} "
        f"(threshold {config.threshold:g}), template corr={analysis.spatial_correlation:.2f}"
        f" -> {'EXCESSIVE' if excessive else 'ok'}",
    )

    return DetectionResult(
        filename=source_id,
        excessive=excessive,
        max_z=analysis.max_z,
        max_component=analysis.max_index,
        threshold=config.threshold,
        spatial_correlation=analysis.spatial_correlation,
        figure_file=figure_file,
        analysis=analysis,
    )


def detect_excessive_component(
    source: Any,
    threshold: float = DEFAULT_THRESHOLD,
    output_dir: Optional[Union[str, Path]] = None,
    *,
    target_label: str = DEFAULT_TARGET_LABEL,
    ddof: int = 0,
    render: bool = True,
) -> DetectionResult:
    """Load a decomposition, detect an excessive component, and save its figure.

    Parameters
    ----------
    source : path-like, mapping, or LoadedDecomposition
        EEGLAB ``.set`` file, an already loaded EEGLAB structure with
        ``chanlocs``, ``icawinv`` and ``filename``, or a
        :class:`~icartifact.io.LoadedDecomposition`.
    threshold : float, default 5.0
        Cutoff for the maximum z-score.
    output_dir : path-like, optional
        Directory for the figure. Defaults to the current working directory.
    target_label : str, default "E55"
        Label of the sensor to check.
    ddof : int, default 0
        Degrees of freedom for the standard deviation.
    render : bool, default True
        Whether to write the three-panel figure.

    Returns
    -------
    DetectionResult

    See Also
    --------
    detect : The computation on an explicit layout and mixing matrix.
    """

    # Deferred: loading and rendering pull in scipy.io, mne and matplotlib
    from icartifact.io import load_decomposition
    from icartifact.reporting.figure import FigureRenderer

    config = DetectionConfig(
        threshold=threshold,
        target_label=target_label,
        output_dir=output_dir,
        ddof=ddof,
    )
    loaded = load_decomposition(source)
    message("header", f"Excessive component check: {loaded.source_id}")

    renderer = FigureRenderer(config.output_dir) if render else None
    return detect(loaded.layout, loaded.mixing, loaded.source_id, config, renderer=renderer)
