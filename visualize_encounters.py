#!/usr/bin/env python3
"""Draw who has played with whom across the prior weeks."""
from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib import colors as mpl_colors
import networkx as nx

import group_creator as creator
from league_weeks import EncounterHistory, encounter_graph, read_history


@dataclass
class EncounterColoring:
    cmap: matplotlib.colors.Colormap
    norm: mpl_colors.Normalize

LAYOUT_CHOICES = ("spring", "circular")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Visualize prior encounters between players")
    ap.add_argument("-w", "--prior-weeks", nargs="+", required=True, type=Path)
    ap.add_argument(
        "--out-dir",
        default=Path("encounter_graphs"),
        type=Path,
        help="Directory for generated images",
    )
    ap.add_argument(
        "--out-prefix",
        default="encounters",
        type=str,
        help="Base filename prefix (suffixes are added per layout)",
    )
    ap.add_argument(
        "--layouts",
        nargs="+",
        default=list(LAYOUT_CHOICES),
        choices=LAYOUT_CHOICES,
        help="One or more layout names to render",
    )
    ap.add_argument("--dpi", type=int, default=150, help="Output DPI")
    ap.add_argument("--skip-heatmap", action="store_true", help="Skip the encounter-count heatmap")
    ap.add_argument("--config", type=Path, help="Optional JSON file with CONFIG overrides (GROUP_MARKER, COMMENT_PREFIX)")
    return ap.parse_args(argv)


def _check_graph(graph: nx.Graph) -> None:
    if not graph.nodes:
        raise RuntimeError("No players to visualize")


def _layout_spring(graph: nx.Graph) -> Dict[str, Tuple[float, float]]:
    if len(graph.nodes) == 1:
        return {next(iter(graph.nodes)): (0.0, 0.0)}
    return nx.spring_layout(graph, seed=42, weight="weight")


def _layout_circular(graph: nx.Graph) -> Dict[str, Tuple[float, float]]:
    if len(graph.nodes) == 1:
        return {next(iter(graph.nodes)): (0.0, 0.0)}
    return nx.circular_layout(graph)


LAYOUT_FNS = {
    "spring": _layout_spring,
    "circular": _layout_circular,
}


def _encounter_coloring(graph: nx.Graph) -> EncounterColoring:
    weights = [d.get("weight", 1) for _, _, d in graph.edges(data=True)] or [1]
    vmin, vmax = min(weights), max(weights)
    if vmin == vmax:
        vmax = vmin + 1
    return EncounterColoring(cmap=plt.get_cmap("OrRd"), norm=mpl_colors.Normalize(vmin=vmin, vmax=vmax))


def draw_graph_variants(
    graph: nx.Graph,
    out_dir: Path,
    out_prefix: str,
    *,
    layouts: List[str],
    dpi: int,
) -> List[Path]:
    _check_graph(graph)
    coloring = _encounter_coloring(graph)
    generated: List[Path] = []

    out_dir.mkdir(parents=True, exist_ok=True)
    prefix = Path(out_prefix).stem or "encounters"
    for layout in layouts:
        out_path = out_dir / f"{prefix}_{layout}.png"
        positions = LAYOUT_FNS[layout](graph)
        _render_graph(graph, positions, out_path, coloring, dpi=dpi, layout_name=layout)
        generated.append(out_path)
    return generated


def _render_graph(
    graph: nx.Graph,
    positions: Dict[str, Tuple[float, float]],
    out_path: Path,
    coloring: EncounterColoring,
    *,
    dpi: int,
    layout_name: str,
) -> None:
    fig, ax = plt.subplots(figsize=(11, 9))
    node_sizes = [350 + 120 * graph.nodes[n].get("weeks", 0) for n in graph.nodes]
    nx.draw_networkx_nodes(
        graph,
        positions,
        node_size=node_sizes,
        node_color="#cfe3f5",
        edgecolors="#2f2f2f",
        linewidths=1.0,
        ax=ax,
    )
    nx.draw_networkx_labels(graph, positions, font_size=8, ax=ax)

    if graph.edges:
        edges = list(graph.edges(data=True))
        widths = [1.0 + 1.5 * (d["weight"] - 1) for _, _, d in edges]
        edge_colors = [coloring.cmap(coloring.norm(d["weight"])) for _, _, d in edges]
        nx.draw_networkx_edges(
            graph,
            positions,
            edgelist=[(a, b) for a, b, _ in edges],
            width=widths,
            edge_color=edge_colors,
            alpha=0.85,
            ax=ax,
        )

    sm = plt.cm.ScalarMappable(norm=coloring.norm, cmap=coloring.cmap)
    sm.set_array([])
    cbar = fig.colorbar(sm, ax=ax, fraction=0.046, pad=0.04)
    cbar.set_label("Times grouped together")
    ax.set_title(f"Prior encounters ({layout_name} layout)")
    ax.set_axis_off()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(out_path, dpi=dpi)
    plt.close(fig)


def plot_heatmap(history: EncounterHistory, out_path: Path, *, dpi: int) -> Path:
    players = sorted(history.players())
    if not players:
        raise RuntimeError("No players to visualize")
    index = {p: i for i, p in enumerate(players)}
    matrix = [[0 for _ in players] for _ in players]
    for (a, b), n in history.pair_counts().items():
        matrix[index[a]][index[b]] = n
        matrix[index[b]][index[a]] = n

    size = max(5.0, 0.35 * len(players) + 2)
    fig, ax = plt.subplots(figsize=(size + 1, size))
    im = ax.imshow(matrix, cmap="OrRd", vmin=0)
    ax.set_xticks(range(len(players)))
    ax.set_yticks(range(len(players)))
    ax.set_xticklabels(players, rotation=90, fontsize=7)
    ax.set_yticklabels(players, fontsize=7)
    ax.set_title("Encounter counts")
    fig.colorbar(im, ax=ax, label="Times grouped together")
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(out_path, dpi=dpi)
    plt.close(fig)
    return out_path


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    for p in [*args.prior_weeks, *([args.config] if args.config else [])]:
        if not p.exists():
            raise SystemExit(f"Missing file: {p}")
    try:
        fmt = creator.week_format(creator.build_config(creator.read_config_file(args.config)))
    except ValueError as e:
        raise SystemExit(str(e))
    history = EncounterHistory(read_history(args.prior_weeks, **fmt))
    graph = encounter_graph(history)
    outputs = draw_graph_variants(graph, args.out_dir, args.out_prefix, layouts=args.layouts, dpi=args.dpi)
    for path in outputs:
        print(f"Wrote graph to {path}")

    if not args.skip_heatmap:
        prefix = Path(args.out_prefix).stem or "encounters"
        path = plot_heatmap(history, args.out_dir / f"{prefix}_heatmap.png", dpi=args.dpi)
        print(f"Wrote heatmap to {path}")


if __name__ == "__main__":
    main()
