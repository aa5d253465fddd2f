#!/usr/bin/env python3
"""
Load generator for the save-score endpoint.

Fires bursts of concurrent score submissions so the lost-update race on the
leaderboard file becomes visible: with N concurrent writers against the same
sha, roughly N-1 of them come back as 500s.

Generates:
  - <run>_raw.csv       one row per request
  - <run>_summary.csv   one row per concurrency level
  - combined_summary.csv
"""

import asyncio
import aiohttp
import time
import yaml
import csv
import os
import sys
import random
import uuid
from statistics import mean


SUMMARY_FIELDS = [
    "run_label", "concurrency", "requests", "ok", "client_errors", "server_errors",
    "conflict_rate", "elapsed_s", "throughput_rps", "latency_avg_ms",
    "latency_p50_ms", "latency_p95_ms", "latency_p99_ms",
]


# ------------------------------------------------------------
# Helper functions
def percentile(values, p):
    if not values:
        return float("nan")
    arr = sorted(values)
    k = (len(arr) - 1) * (p / 100.0)
    f = int(k)
    c = min(f + 1, len(arr) - 1)
    if f == c:
        return arr[f]
    return arr[f] + (arr[c] - arr[f]) * (k - f)


def load_yaml(path):
    with open(path, "r") as f:
        return yaml.safe_load(f)


def make_submission(req_id, body):
    payload = {
        "name": f"bench-{req_id[:8]}",
        "score": random.randint(0, 999999),
        "level": random.randint(1, 50),
    }
    payload.update(body or {})
    return payload


# ------------------------------------------------------------
async def one_request(session, url, json_body, timeout_s):
    t0 = time.perf_counter()
    try:
        async with session.post(url, json=json_body, timeout=timeout_s) as resp:
            _ = await resp.text()
            t1 = time.perf_counter()
            return {
                "ok": (200 <= resp.status < 300),
                "status": resp.status,
                "latency_ms": (t1 - t0) * 1000.0,
            }
    except Exception as e:
        t1 = time.perf_counter()
        return {"ok": False, "status": -1, "latency_ms": (t1 - t0) * 1000.0, "error": str(e)}


async def run_level(session, url, json_body, timeout_s, concurrency, total_requests, writer, run_label):
    latencies = []
    counts = {"ok": 0, "client": 0, "server": 0}
    sem = asyncio.Semaphore(concurrency)
    t_start = time.perf_counter()

    async def worker(req_id):
        async with sem:
            res = await one_request(session, url, make_submission(req_id, json_body), timeout_s)
            latencies.append(res["latency_ms"])
            if res["ok"]:
                counts["ok"] += 1
            elif 400 <= res["status"] < 500:
                counts["client"] += 1
            else:
                counts["server"] += 1
            writer.writerow({
                "run_label": run_label,
                "concurrency": concurrency,
                "req_id": req_id,
                "ok": int(res["ok"]),
                "status": res["status"],
                "latency_ms": f"{res['latency_ms']:.3f}"
            })

    tasks = [asyncio.create_task(worker(str(uuid.uuid4()))) for _ in range(total_requests)]
    await asyncio.gather(*tasks)

    elapsed = time.perf_counter() - t_start
    throughput = counts["ok"] / elapsed if elapsed > 0 else 0.0

    return {
        "concurrency": concurrency,
        "requests": total_requests,
        "ok": counts["ok"],
        "client_errors": counts["client"],
        "server_errors": counts["server"],
        # validation never fails for generated payloads, so 5xx here is the write race
        "conflict_rate": counts["server"] / total_requests if total_requests else 0.0,
        "elapsed_s": elapsed,
        "throughput_rps": throughput,
        "latency_avg_ms": mean(latencies) if latencies else float("nan"),
        "latency_p50_ms": percentile(latencies, 50),
        "latency_p95_ms": percentile(latencies, 95),
        "latency_p99_ms": percentile(latencies, 99),
    }


def write_summary(path, rows):
    with open(path, "w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=SUMMARY_FIELDS)
        w.writeheader()
        for s in rows:
            w.writerow(s)


# ------------------------------------------------------------
async def main():
    import argparse
    ap = argparse.ArgumentParser()
    ap.add_argument("-c", "--config", default="config.yaml")
    args = ap.parse_args()

    cfg = load_yaml(args.config)
    outdir = cfg.get("output_dir", "./bench_runs")
    os.makedirs(outdir, exist_ok=True)
    timeout_s = float(cfg.get("timeout_seconds", 30.0))

    async with aiohttp.ClientSession() as session:
        all_rows = []

        for run in cfg["runs"]:
            name = run["name"]
            url = run["url"]
            body = run.get("json_body", {})
            conc_levels = run.get("concurrency_levels", [1, 2, 4, 8])
            per_level = int(run.get("requests_per_level", 20))

            print(f"[run:{name}] -> {url} (POST)")

            raw_path = os.path.join(outdir, f"{name}_raw.csv")
            summary_path = os.path.join(outdir, f"{name}_summary.csv")

            with open(raw_path, "w", newline="") as fraw:
                writer = csv.DictWriter(fraw, fieldnames=["run_label", "concurrency", "req_id", "ok", "status", "latency_ms"])
                writer.writeheader()
                summaries = []

                for c in conc_levels:
                    print(f"  [concurrency={c}] submitting {per_level} scores ...")
                    s = await run_level(session, url, body, timeout_s, c, per_level, writer, name)
                    s["run_label"] = name
                    summaries.append(s)
                    print(f"    saved={s['ok']}/{s['requests']}, conflict_rate={s['conflict_rate']:.2%}, p95={s['latency_p95_ms']:.1f} ms")

            write_summary(summary_path, summaries)
            all_rows.extend(summaries)

        combined_path = os.path.join(outdir, "combined_summary.csv")
        write_summary(combined_path, all_rows)
        print(f"\n[saved] combined_summary.csv -> {combined_path}")


# ------------------------------------------------------------
if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        sys.exit(1)
