#!/usr/bin/env python3
"""
Turns combined_summary.csv from benchmark.py into two figures:
  - outcomes.png  saved vs lost submissions per concurrency level (stacked bars)
  - latency.png   average and p95 latency per concurrency level
and prints the lost-submission table to stdout.
"""
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
import argparse, os

sns.set_theme(style="whitegrid")


def load_summary(path):
    df = pd.read_csv(path)
    df["lost"] = df["server_errors"]
    df["rejected"] = df["client_errors"]
    df["saved_pct"] = 100.0 * df["ok"] / df["requests"]
    return df


def plot_outcomes(df, outfile):
    runs = df["run_label"].unique()
    fig, axes = plt.subplots(1, len(runs), figsize=(6 * len(runs), 5), squeeze=False)
    for ax, run in zip(axes[0], runs):
        part = df[df["run_label"] == run].set_index("concurrency")[["ok", "lost", "rejected"]]
        part.plot.bar(stacked=True, ax=ax, color=["#4c9f70", "#d1495b", "#edae49"])
        ax.set_title(run)
        ax.set_xlabel("Concurrent submissions")
        ax.set_ylabel("Requests")
        ax.legend(["saved", "lost (5xx)", "rejected (4xx)"])
    fig.tight_layout()
    fig.savefig(outfile, dpi=160)
    plt.close(fig)
    print(f"[saved] {outfile}")


def plot_latency(df, outfile):
    long = df.melt(
        id_vars=["run_label", "concurrency"],
        value_vars=["latency_avg_ms", "latency_p95_ms"],
        var_name="statistic", value_name="latency_ms",
    )
    plt.figure(figsize=(8, 5))
    sns.lineplot(data=long, x="concurrency", y="latency_ms", hue="run_label", style="statistic", marker="o")
    plt.xlabel("Concurrent submissions")
    plt.ylabel("Latency (ms)")
    plt.tight_layout()
    plt.savefig(outfile, dpi=160)
    plt.close()
    print(f"[saved] {outfile}")


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--csv", default="./bench_runs/combined_summary.csv")
    ap.add_argument("--outdir", default="./bench_plots")
    args = ap.parse_args()
    os.makedirs(args.outdir, exist_ok=True)

    df = load_summary(args.csv)
    print(df[["run_label", "concurrency", "requests", "ok", "lost", "saved_pct"]].to_string(index=False))

    plot_outcomes(df, os.path.join(args.outdir, "outcomes.png"))
    plot_latency(df, os.path.join(args.outdir, "latency.png"))


if __name__ == "__main__":
    main()
