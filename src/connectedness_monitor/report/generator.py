"""
Report generation module.

Generates text-based summaries of connectedness runs and spillover tables.
"""

from typing import Optional
from datetime import datetime
import logging

import numpy as np

from ..core.config import Config
from ..core.constants import CENTRALITY_LABELS, CENTRALITY_MEASURES
from ..analysis.aggregator import AggregatedDataset
from ..analysis.variance_decomposition import SpilloverSummary, VarianceDecomposition

logger = logging.getLogger(__name__)

RULE = "━" * 82


def _section(title: str) -> str:
    return f"\n{RULE}\n{title}\n{RULE}\n"


class ReportGenerator:
    """
    Text report generator.

    Summarizes the indicator path, the averaged network and its most central
    entities, and formats variance decomposition tables.
    """

    def __init__(self, config: Config, top_n: int = 5):
        """
        Initialize report generator.

        Args:
            config: Configuration object
            top_n: Entities listed per centrality measure
        """
        self.config = config
        self.top_n = top_n

    def generate(self, dataset: AggregatedDataset, date: Optional[datetime] = None) -> str:
        """
        Generate the run report.

        Args:
            dataset: Aggregated run output
            date: Report timestamp (default: now)

        Returns:
            Formatted report string
        """
        date = date or datetime.now()
        indicators = dataset.indicators.astype(float).dropna(how='all')
        dci = indicators['DCI']
        breaches = dataset.threshold_breaches

        report = f"""
╔═══════════════════════════════════════════════════════════════════════════════╗
║                        CONNECTEDNESS MONITOR REPORT                            ║
║                        {date.strftime('%Y-%m-%d %H:%M')}                                       ║
╚═══════════════════════════════════════════════════════════════════════════════╝
"""
        report += _section("RUN PARAMETERS")
        report += f"""
Firms:             {len(dataset.firm_names)}
Observations:      {len(dataset.dates)}
Bandwidth:         {dataset.bandwidth}
Windows:           {dataset.n_windows}
Significance:      {dataset.significance}
Robust p-values:   {'yes' if dataset.robust else 'no'}
Threshold k:       {dataset.k}
Groups:            {', '.join(dataset.partition.names) if not dataset.partition.is_empty else 'None'}
"""

        report += _section("DYNAMIC CAUSALITY INDEX")
        if len(dci) > 0:
            latest = dci.index[-1]
            if hasattr(latest, "strftime"):
                latest = latest.strftime("%Y-%m-%d")
            report += f"""
Latest ({latest}):  {dci.iloc[-1]:.4f}
Mean:              {dci.mean():.4f}
Min / Max:         {dci.min():.4f} / {dci.max():.4f}
Windows >= k:      {int(breaches.sum())} of {dataset.n_windows}
"""
            if dci.iloc[-1] >= dataset.k:
                report += "⚠ DCI above the causality threshold\n"
            else:
                report += "✓ DCI below the causality threshold\n"

        report += _section("AVERAGE NETWORK")
        adjacency = dataset.average_adjacency
        n = adjacency.shape[0]
        report += f"\nEdges:             {int(adjacency.sum())} of {n * n - n}\n"

        report += "\nMost central entities:\n"
        names = np.array(dataset.firm_names)
        for measure in CENTRALITY_MEASURES:
            values = getattr(dataset.average_centralities, measure)
            top = np.argsort(values)[::-1][:self.top_n]
            entries = ', '.join(f"{names[i]} ({values[i]:.3f})" for i in top)
            report += f"  {CENTRALITY_LABELS[measure]:<24}: {entries}\n"

        report += RULE + "\n"
        return report

    def generate_spillover(self, decomposition: VarianceDecomposition, summary: SpilloverSummary) -> str:
        """
        Format a variance decomposition with its spillover summary.

        Args:
            decomposition: Full-sample decomposition
            summary: Spillover measures derived from it

        Returns:
            Formatted table string
        """
        method = 'Generalized' if decomposition.generalized else 'Orthogonal'
        frame = decomposition.to_frame() * 100

        report = _section(
            f"{method.upper()} VARIANCE DECOMPOSITION (p={decomposition.lags}, h={decomposition.horizon})"
        )
        report += "\n" + frame.round(2).to_string() + "\n"

        report += _section("SPILLOVERS (%)")
        report += f"\nTotal spillover index: {summary.total * 100:.2f}\n\n"
        report += f"  {'Entity':<14}{'To':>10}{'From':>10}{'Net':>10}\n"
        for name in summary.net.index:
            report += (
                f"  {str(name):<14}{summary.to_others[name] * 100:>10.2f}"
                f"{summary.from_others[name] * 100:>10.2f}{summary.net[name] * 100:>+10.2f}\n"
            )

        report += RULE + "\n"
        return report
