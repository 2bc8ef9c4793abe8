#!/usr/bin/env python3
"""
End-to-end demo script for a locally running safecount service.

Usage:
  PYTHONPATH=. python scripts/run_demo.py --seed --counter --topics

Options implemented in script:
 - --seed : run safecount.seed to ensure demo data exists
 - --counter : increment the shared counter a few times and read it back
 - --load : ask the service to run a concurrent workload and report it
 - --topics : create a topic and subscription, grant viewer, list them, clean up

The script assumes the app is already running at http://127.0.0.1:5000
(override with SAFECOUNT_URL). It prints JSON responses for each step.
"""

import argparse
import json
import os
import subprocess
import sys
import uuid

import requests

BASE = os.environ.get("SAFECOUNT_URL", "http://127.0.0.1:5000")

session = requests.Session()


def run_seed():
    print("Running DB seed...")
    res = subprocess.run([sys.executable, "-m", "safecount.seed"], capture_output=True, text=True)
    print(res.stdout)
    if res.returncode != 0:
        print(res.stderr)
        raise SystemExit("Seeding failed")


def counter_steps(times=3):
    for _ in range(times):
        r = session.post(f"{BASE}/counter/increment")
        print("POST /counter/increment", r.status_code, r.text.strip())
    r = session.get(f"{BASE}/counter")
    print("GET /counter", r.status_code, r.text.strip())
    return r.json() if r.ok else None


def counter_load(total=40, workers=20):
    print(f"POST /counter/load total={total} workers={workers}")
    r = session.post(f"{BASE}/counter/load", json={"total": total, "workers": workers})
    print(r.status_code)
    if r.ok:
        print(json.dumps(r.json(), indent=2))
    else:
        print(r.text)
    return r


def topic_steps():
    suffix = uuid.uuid4().hex[:8]
    topic = f"topic-{suffix}"
    sub = f"subscription-{suffix}"

    r = session.post(f"{BASE}/topics/{topic}")
    print("create topic", r.status_code, r.text.strip())
    r = session.post(f"{BASE}/topics/{topic}/subscriptions/{sub}", json={})
    print("create subscription", r.status_code, r.text.strip())
    policy = {"bindings": [{"role": "roles/viewer", "members": ["allAuthenticatedUsers"]}]}
    r = session.put(f"{BASE}/topics/{topic}/policy", json=policy)
    print("set policy", r.status_code, r.text.strip())
    r = session.post(f"{BASE}/topics/{topic}/permissions", json={"permissions": ["pubsub.topics.get", "pubsub.topics.delete"]})
    print("test permissions", r.status_code, r.text.strip())
    r = session.get(f"{BASE}/topics/{topic}/subscriptions")
    print("list subscriptions", r.status_code, r.text.strip())
    r = session.delete(f"{BASE}/topics/{topic}")
    print("delete topic", r.status_code, r.text.strip())
    r = session.get(f"{BASE}/topics/{topic}")
    print("get deleted topic", r.status_code, r.text.strip())


if __name__ == "__main__":
    p = argparse.ArgumentParser()
    p.add_argument("--seed", action="store_true", help="Run DB seed")
    p.add_argument("--counter", action="store_true")
    p.add_argument("--load", action="store_true")
    p.add_argument("--topics", action="store_true")
    args = p.parse_args()

    if args.seed:
        run_seed()
    if args.counter:
        counter_steps()
    if args.load:
        counter_load()
    if args.topics:
        topic_steps()

    print("Done")
