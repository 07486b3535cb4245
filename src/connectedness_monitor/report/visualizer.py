"""
Visualization module.

Generates PNG charts for a connectedness run: indicators, the averaged causal
network, its adjacency matrix, average centralities and PCA explained variance.
"""

from typing import List, Optional
from pathlib import Path
import logging

import numpy as np
import networkx as nx
import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
from matplotlib.colors import ListedColormap

from ..core.config import Config
from ..core.constants import CENTRALITY_LABELS, CENTRALITY_MEASURES, GROUP_PALETTE
from ..analysis.aggregator import AggregatedDataset

logger = logging.getLogger(__name__)


class Visualizer:
    """
    Connectedness chart renderer.

    Creates:
    - Indicators (DCI with threshold, in/out connections)
    - Network graph of the averaged adjacency matrix
    - Average adjacency matrix
    - Average centrality measures
    - PCA explained variance
    """

    def __init__(self, config: Config):
        """
        Initialize visualizer.

        Args:
            config: Configuration object
        """
        self.config = config
        self.viz = config.visualization
        self.colors = self.viz.colors

    def create_all(self, dataset: AggregatedDataset, output_dir, prefix: Optional[str] = None) -> List[Path]:
        """
        Render every chart into a directory.

        Returns:
            Paths of the written images
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        prefix = prefix or self.config.output.results_prefix

        charts = [
            ('indicators', self.plot_indicators),
            ('network', self.plot_network),
            ('adjacency', self.plot_adjacency),
            ('centralities', self.plot_centralities),
            ('pca', self.plot_pca),
        ]

        paths = []
        for name, draw in charts:
            path = output_dir / f"{prefix}_{name}.png"
            draw(dataset, path)
            paths.append(path)

        return paths

    def _style(self, ax, title: str) -> None:
        ax.set_facecolor(self.colors['panel'])
        ax.set_title(title, fontsize=12, fontweight='bold', color=self.colors['text'])
        ax.tick_params(colors=self.colors['text'])
        for spine in ax.spines.values():
            spine.set_color(self.colors['grid'])

    def _save(self, fig, path) -> None:
        fig.savefig(path, dpi=self.viz.dpi, facecolor=self.colors['bg'], bbox_inches='tight')
        plt.close(fig)
        logger.info(f"Chart saved: {path}")

    def _group_colors(self, dataset: AggregatedDataset) -> List[str]:
        partition = dataset.partition
        n = len(dataset.firm_names)
        if partition.is_empty:
            return [self.colors['accent']] * n
        return [GROUP_PALETTE[partition.group_of(i) % len(GROUP_PALETTE)] for i in range(n)]

    def plot_indicators(self, dataset: AggregatedDataset, path) -> None:
        """Plot DCI against the threshold k and the connection counts."""
        logger.debug(f"Plotting indicators: {path}")

        indicators = dataset.indicators.astype(float)
        dates = indicators.index
        k = dataset.k

        fig, (ax1, ax2) = plt.subplots(2, 1, figsize=self.viz.figsize, sharex=True,
                                       facecolor=self.colors['bg'])

        dci = indicators['DCI']
        ax1.plot(dates, dci, color=self.colors['accent'], lw=1.5, label='DCI')
        ax1.axhline(k, color=self.colors['danger'], ls='--', lw=1, label=f'k = {k:.2f}')
        ax1.fill_between(dates, k, dci, where=(dci >= k).to_numpy(), color=self.colors['danger'], alpha=0.3)
        ax1.legend(loc='upper left', fontsize=8, facecolor=self.colors['panel'], labelcolor=self.colors['text'])
        self._style(ax1, 'DYNAMIC CAUSALITY INDEX')

        ax2.plot(dates, indicators['Connections_InOut'], color=self.colors['safe'], lw=1.5, label='In & Out')
        other = indicators['Connections_InOutOther']
        if other.notna().any():
            ax2.plot(dates, other, color=self.colors['warning'], lw=1.5, label='In & Out - Other')
        ax2.legend(loc='upper left', fontsize=8, facecolor=self.colors['panel'], labelcolor=self.colors['text'])
        self._style(ax2, 'CONNECTIONS')

        self._save(fig, path)

    def plot_network(self, dataset: AggregatedDataset, path) -> None:
        """Draw the averaged causal network on a circular layout."""
        logger.debug(f"Plotting network: {path}")

        graph = nx.from_numpy_array(dataset.average_adjacency, create_using=nx.DiGraph)
        graph = nx.relabel_nodes(graph, dict(enumerate(dataset.firm_names)))

        degrees = dataset.average_centralities.degrees
        max_degree = degrees.max() if degrees.max() > 0 else 1
        node_sizes = [300 + 1500 * d / max_degree for d in degrees]

        pos = nx.circular_layout(graph)

        fig, ax = plt.subplots(figsize=self.viz.figsize, facecolor=self.colors['bg'])
        ax.set_facecolor(self.colors['panel'])

        nx.draw_networkx_edges(graph, pos, ax=ax, edge_color=self.colors['muted'], alpha=0.6,
                               arrows=True, arrowsize=10)
        nx.draw_networkx_nodes(graph, pos, ax=ax, node_color=self._group_colors(dataset),
                               node_size=node_sizes, alpha=0.9, edgecolors='white', linewidths=1.5)
        nx.draw_networkx_labels(graph, pos, ax=ax, font_size=8, font_color='white', font_weight='bold')

        partition = dataset.partition
        if not partition.is_empty:
            names = partition.names or tuple(f"Group {i + 1}" for i in range(partition.n_groups))
            legend = [
                mpatches.Patch(facecolor=GROUP_PALETTE[i % len(GROUP_PALETTE)], label=name)
                for i, name in enumerate(names)
            ]
            ax.legend(handles=legend, loc='lower left', fontsize=8,
                      facecolor=self.colors['panel'], labelcolor=self.colors['text'])

        ax.set_title(f"AVERAGE CAUSAL NETWORK ({int(dataset.average_adjacency.sum())} edges)",
                     fontsize=12, fontweight='bold', color=self.colors['text'])
        ax.axis('off')

        self._save(fig, path)

    def plot_adjacency(self, dataset: AggregatedDataset, path) -> None:
        """Plot the averaged adjacency matrix (row = cause, column = effect)."""
        logger.debug(f"Plotting adjacency matrix: {path}")

        names = dataset.firm_names
        n = len(names)

        fig, ax = plt.subplots(figsize=self.viz.figsize, facecolor=self.colors['bg'])
        cmap = ListedColormap([self.colors['panel'], self.colors['accent']])
        ax.imshow(dataset.average_adjacency, cmap=cmap, vmin=0, vmax=1)

        ax.set_xticks(range(n))
        ax.set_xticklabels(names, rotation=90, fontsize=7, color=self.colors['text'])
        ax.set_yticks(range(n))
        ax.set_yticklabels(names, fontsize=7, color=self.colors['text'])
        ax.set_xlabel('Effect', color=self.colors['text'])
        ax.set_ylabel('Cause', color=self.colors['text'])

        for boundary in dataset.partition.delimiters:
            ax.axhline(boundary - 0.5, color=self.colors['warning'], lw=1)
            ax.axvline(boundary - 0.5, color=self.colors['warning'], lw=1)

        self._style(ax, 'AVERAGE ADJACENCY MATRIX')
        self._save(fig, path)

    def plot_centralities(self, dataset: AggregatedDataset, path) -> None:
        """Bar charts of the six centralities of the averaged network."""
        logger.debug(f"Plotting centralities: {path}")

        names = dataset.firm_names
        x = np.arange(len(names))
        colors = self._group_colors(dataset)

        fig, axes = plt.subplots(2, 3, figsize=self.viz.figsize, facecolor=self.colors['bg'])

        for ax, measure in zip(axes.flat, CENTRALITY_MEASURES):
            values = getattr(dataset.average_centralities, measure)
            ax.bar(x, values, color=colors, alpha=0.85)
            ax.set_xticks(x)
            ax.set_xticklabels(names, rotation=90, fontsize=6, color=self.colors['text'])
            self._style(ax, CENTRALITY_LABELS[measure])

        fig.suptitle('AVERAGE CENTRALITY MEASURES', fontsize=16, fontweight='bold', color='white')
        fig.tight_layout()
        self._save(fig, path)

    def plot_pca(self, dataset: AggregatedDataset, path) -> None:
        """Cumulative explained variance of the first three components per window."""
        logger.debug(f"Plotting PCA: {path}")

        sums = dataset.pca_explained_sums.astype(float)
        dates = sums.index

        fig, ax = plt.subplots(figsize=self.viz.figsize, facecolor=self.colors['bg'])

        layers = [
            ('PC1', self.colors['accent']),
            ('PC1-2', self.colors['safe']),
            ('PC1-3', self.colors['warning']),
            ('Total', self.colors['muted']),
        ]
        lower = np.zeros(len(sums))
        for column, color in layers:
            upper = sums[column].to_numpy()
            ax.fill_between(dates, lower, upper, color=color, alpha=0.6, label=column)
            lower = upper

        ax.set_ylim(0, 100)
        ax.set_ylabel('Explained Variance (%)', color=self.colors['text'])
        ax.legend(loc='lower left', fontsize=8, facecolor=self.colors['panel'], labelcolor=self.colors['text'])
        self._style(ax, 'PCA EXPLAINED VARIANCE')

        self._save(fig, path)
