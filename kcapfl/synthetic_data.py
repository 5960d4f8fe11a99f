"""
Synthetic Point Set Generator for KCapFL Clustering

This module generates labeled 2D point sets for demos, tests and
benchmarks, and reads/writes point sets and clustering results.

Key Features:
- Several spatial patterns (uniform, gaussian blobs, regular grid)
- Reproducible results via random seed control
- JSON/CSV import and export
- Optional matplotlib plot of a clustering result

Example Usage:
    >>> from kcapfl.synthetic_data import generate_points, PointPattern
    >>> points = generate_points(60, PointPattern.BLOBS, seed=42)
    >>> save_points_to_json(points, "data/points.json")
"""

import csv
import json
from enum import Enum
from pathlib import Path
from typing import List, Optional
import numpy as np

from .data_models import ClusteringResult, LabeledPoint2D, labeled_points_from_array


class PointPattern(Enum):
    """Spatial distributions for generated points."""
    UNIFORM = "uniform"     # Uniform over the square [0, extent]²
    BLOBS = "blobs"         # Gaussian blobs around random centers
    GRID = "grid"           # Regular grid (many equal distances)


def generate_points(
    num_points: int = 60,
    pattern: PointPattern = PointPattern.UNIFORM,
    extent: float = 100.0,
    num_blobs: int = 5,
    blob_std: float = 4.0,
    seed: Optional[int] = None,
    prefix: str = "P"
) -> List[LabeledPoint2D]:
    """
    Generate a labeled point set inside the square [0, extent]².

    Args:
        num_points: Number of points to generate
        pattern: Spatial distribution of the points
        extent: Side length of the square region
        num_blobs: Number of blob centers for BLOBS
        blob_std: Standard deviation of each blob for BLOBS
        seed: Random seed for reproducibility
        prefix: Prefix of generated labels ("P_0000", "P_0001", ...)

    Returns:
        List of LabeledPoint2D

    Complexity:
        Time: O(n)
        Space: O(n)
    """
    if num_points < 0:
        raise ValueError(f"num_points must be non-negative, got {num_points}")
    rng = np.random.RandomState(seed)

    if pattern == PointPattern.UNIFORM:
        coords = rng.uniform(0.0, extent, size=(num_points, 2))
    elif pattern == PointPattern.BLOBS:
        centers = rng.uniform(0.1 * extent, 0.9 * extent, size=(max(1, num_blobs), 2))
        assignment = rng.randint(0, len(centers), size=num_points)
        coords = centers[assignment] + rng.normal(0.0, blob_std, size=(num_points, 2))
        coords = np.clip(coords, 0.0, extent)
    elif pattern == PointPattern.GRID:
        side = int(np.ceil(np.sqrt(num_points))) if num_points else 0
        ticks = np.linspace(0.0, extent, side) if side > 1 else np.zeros(side)
        xx, yy = np.meshgrid(ticks, ticks)
        coords = np.column_stack([xx.ravel(), yy.ravel()])[:num_points]
    else:
        raise ValueError(f"Unknown pattern: {pattern}")

    return labeled_points_from_array(coords, prefix=prefix)


def save_points_to_json(points: List[LabeledPoint2D], filepath: str) -> None:
    """Save a point set as a JSON list of {label, x, y} objects."""
    Path(filepath).parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, 'w') as f:
        json.dump({"points": [p.to_dict() for p in points]}, f, indent=2)


def load_points_from_json(filepath: str) -> List[LabeledPoint2D]:
    """Load a point set written by save_points_to_json."""
    with open(filepath, 'r') as f:
        data = json.load(f)
    entries = data["points"] if isinstance(data, dict) else data
    return [LabeledPoint2D.from_dict(e) for e in entries]


def save_points_to_csv(points: List[LabeledPoint2D], filepath: str) -> None:
    """Export a point set to CSV with columns label, x, y."""
    Path(filepath).parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(['label', 'x', 'y'])
        for p in points:
            writer.writerow([p.label, p.x, p.y])


def load_points_from_csv(filepath: str) -> List[LabeledPoint2D]:
    """Load a point set from CSV with columns label, x, y."""
    with open(filepath, 'r', newline='') as f:
        return [LabeledPoint2D.from_dict(row) for row in csv.DictReader(f)]


def load_points(filepath: str) -> List[LabeledPoint2D]:
    """Load a point set from .json or .csv, chosen by file extension."""
    if Path(filepath).suffix.lower() == ".csv":
        return load_points_from_csv(filepath)
    return load_points_from_json(filepath)


def visualize_clusters(
    result: ClusteringResult,
    save_path: Optional[str] = None,
    show_radius: bool = True
) -> None:
    """
    Plot a clustering result.

    Each cluster gets its own color; the anchor is drawn as a square and,
    optionally, the covering circle around it.

    Args:
        result: Clustering result to plot
        save_path: If provided, save figure to this path instead of showing
        show_radius: Whether to draw each cluster's covering circle

    Note:
        Requires matplotlib. Import error is caught gracefully.
    """
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        print("matplotlib not available for visualization")
        return

    fig, ax = plt.subplots(figsize=(8, 8))
    cmap = plt.get_cmap('tab20')

    for i, cluster in enumerate(result.clusters):
        color = cmap(i % 20)
        coords = np.array([[m.x, m.y] for m in cluster.members])
        ax.scatter(coords[:, 0], coords[:, 1], color=color, s=30, alpha=0.8)
        ax.scatter([cluster.center.x], [cluster.center.y], color=color,
                   s=80, marker='s', edgecolors='black')
        if show_radius:
            ax.add_patch(plt.Circle((cluster.center.x, cluster.center.y),
                                    cluster.radius, color=color, fill=False,
                                    alpha=0.5, linewidth=0.8))

    ax.set_xlabel('X')
    ax.set_ylabel('Y')
    ax.set_title(f'KCapFL clusters (k={result.capacity}, n={result.num_points})')
    ax.grid(True, alpha=0.3)
    ax.set_aspect('equal', adjustable='box')
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"Visualization saved to {save_path}")
    else:
        plt.show()

    plt.close(fig)
