#!/usr/bin/env python3
"""
Smoke E2E test: runs one video through the pipeline on a live server.

The server needs YOUTUBE_API_KEY; AI stages run on the stub collaborators.
Video generation is skipped unless FFmpeg is installed on the server.

Env vars:
  BASE_URL       (default http://localhost:8000)
  VIDEO_ID       (default dQw4w9WgXcQ)
  FORMAT         (default short)
  WITH_VIDEO     (default 0; 1 to request the final composition)
"""
from __future__ import annotations

import json
import os
import sys
import time
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

BASE_URL = os.environ.get("BASE_URL", "http://localhost:8000").rstrip("/")
VIDEO_ID = os.environ.get("VIDEO_ID", "dQw4w9WgXcQ")
FORMAT = os.environ.get("FORMAT", "short")
WITH_VIDEO = os.environ.get("WITH_VIDEO", "0") == "1"

SMOKE_TAG = f"smoke_{int(time.time())}"


class SmokeError(Exception):
    pass


def _req(method: str, path: str, body: dict | None = None) -> tuple[int, dict]:
    url = f"{BASE_URL}{path}"
    data = json.dumps(body).encode() if body is not None else None
    req = Request(url, data=data, headers={"Content-Type": "application/json"}, method=method)
    try:
        with urlopen(req, timeout=600) as resp:
            raw = resp.read().decode()
            return resp.status, (json.loads(raw) if raw else {})
    except HTTPError as e:
        raw = e.read().decode()
        try:
            return e.code, json.loads(raw)
        except ValueError:
            raise SmokeError(f"{method} {path} → {e.code}: {raw[:500]}")
    except URLError as e:
        raise SmokeError(f"{method} {path} → URLError: {e}")


def step(name: str):
    print(f"\n{'='*60}")
    print(f"  STEP: {name}")
    print(f"{'='*60}")


def ok(msg: str):
    print(f"  ✅ {msg}")


def fail(msg: str):
    print(f"  ❌ {msg}")
    raise SmokeError(msg)


def step1_health():
    step("1. Health check")
    status, data = _req("GET", "/api/ops/health")
    if status != 200:
        fail(f"health → {status}")
    ok(f"Projects: {data.get('projects')}  runs: {data.get('runs')}  scheduler: {data.get('scheduler_running')}")


def step2_create_project() -> int:
    step("2. Create project")
    status, project = _req("POST", "/api/projects", {
        "name": f"SMOKE {SMOKE_TAG}",
        "keyword": "smoke",
        "format": FORMAT,
    })
    if status != 201:
        fail(f"create project → {status}: {project}")
    ok(f"Project #{project['id']} ({project['format']})")
    return project["id"]


def step3_run_pipeline(project_id: int) -> dict:
    step("3. Run pipeline")
    t0 = time.time()
    status, body = _req("POST", "/api/pipeline", {
        "projectId": project_id,
        "videoId": VIDEO_ID,
        "transcript": "Smoke test transcript. The pipeline should summarize this.",
        "skipVideoGeneration": not WITH_VIDEO,
    })
    report = body.get("data") or {}
    for name, outcome in report.get("stages", {}).items():
        print(f"    {name:<22} {outcome.get('status'):<10} {outcome.get('durationMs', 0)} ms")
    if status != 200 or not body.get("success"):
        fail(f"pipeline → {status}: {body.get('error')}")
    ok(f"Run {report['runId']} {report['status']} in {time.time() - t0:.1f}s")
    return report


def step4_check_artifacts(project_id: int, report: dict):
    step("4. Check persisted artifacts")
    _, run = _req("GET", f"/api/pipeline/runs/{report['runId']}")
    if run.get("status") != report["status"]:
        fail(f"run status mismatch: {run.get('status')} != {report['status']}")
    ok(f"Run row status={run['status']}")

    _, videos = _req("GET", f"/api/projects/{project_id}/videos")
    if not videos:
        fail("no scored video stored")
    video = videos[0]
    ok(f"Video #{video['id']} score={video['viral_score']} grade={video['viral_grade']}")

    _, artifacts = _req("GET", f"/api/videos/{video['id']}/artifacts")
    scripts = artifacts.get("scripts", [])
    ok(f"Analyses={len(artifacts.get('comment_analyses', []))} "
       f"summaries={len(artifacts.get('content_summaries', []))} scripts={len(scripts)}")
    if not scripts:
        return

    _, assets = _req("GET", f"/api/scripts/{scripts[0]['id']}/assets")
    by_type: dict[str, int] = {}
    for asset in assets:
        by_type[asset["asset_type"]] = by_type.get(asset["asset_type"], 0) + 1
    ok(f"Assets: {by_type}")


def main():
    print(f"\n🔬 Smoke E2E Test: {BASE_URL}")
    print(f"   VIDEO_ID={VIDEO_ID}  FORMAT={FORMAT}  WITH_VIDEO={WITH_VIDEO}\n")

    try:
        step1_health()
        project_id = step2_create_project()
        report = step3_run_pipeline(project_id)
        step4_check_artifacts(project_id, report)
    except SmokeError as e:
        print(f"\n{'='*60}")
        print(f"  ❌ FAIL: {e}")
        print(f"{'='*60}\n")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n\n  ⏹ Interrupted")
        sys.exit(130)

    print("\n  ✅ SMOKE PASSED\n")


if __name__ == "__main__":
    main()
