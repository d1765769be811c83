import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Simulated Raft cluster for trying out raft-health locally.
# Every member serves /debug/vars and /v2/members from its own port.
# Requires: pip install flask
import argparse
import logging
import random
import threading
import time

from flask import Flask, jsonify

from raft_health.raft_status import ConsensusRole, ConsensusSnapshot, FollowerProgress

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


class SimulatedCluster:
    """In-memory cluster state shared by all simulated members."""

    def __init__(self, size=3, base_port=2379, host='127.0.0.1', lagging=None, stalled=False):
        self.lock = threading.Lock()
        self.host = host
        self.member_ids = [f"{0x8e9e05c52164694d + i:x}" for i in range(size)]
        self.ports = {mid: base_port + i for i, mid in enumerate(self.member_ids)}
        self.leader_id = self.member_ids[0]
        self.term = 2
        self.commit = 0
        self.match = {mid: 0 for mid in self.member_ids}
        self.lagging = set(lagging or [])
        self.stalled = stalled

    def client_url(self, member_id):
        return f"http://{self.host}:{self.ports[member_id]}"

    def tick(self):
        """Append and replicate a few entries, unless the leader is stalled."""
        with self.lock:
            if self.stalled:
                return
            self.commit += random.randint(1, 5)
            for mid in self.member_ids:
                if mid not in self.lagging:
                    self.match[mid] = self.commit

    def remove_member(self, member_id):
        with self.lock:
            self.member_ids.remove(member_id)
            self.match.pop(member_id, None)

    def snapshot(self, member_id) -> ConsensusSnapshot:
        with self.lock:
            is_leader = member_id == self.leader_id
            progress = {}
            if is_leader:
                progress = {
                    mid: FollowerProgress(match_index=self.match[mid], next_index=self.match[mid] + 1,
                                          state="ProgressStateReplicate")
                    for mid in self.member_ids
                }
            return ConsensusSnapshot(
                member_id=member_id,
                term=self.term,
                vote=self.leader_id,
                leader_id=self.leader_id,
                commit_index=self.commit,
                consensus_role=(ConsensusRole.LEADER if is_leader else ConsensusRole.FOLLOWER).value,
                follower_progress=progress,
            )

    def members_document(self):
        with self.lock:
            member_ids = list(self.member_ids)
        return {
            "members": [
                {
                    "id": mid,
                    "name": f"member{i}",
                    "peerURLs": [f"http://{self.host}:{self.ports[mid] + 1000}"],
                    "clientURLs": [self.client_url(mid)],
                }
                for i, mid in enumerate(member_ids)
            ]
        }


def create_app(cluster: SimulatedCluster, member_id: str) -> Flask:
    app = Flask(f"member-{member_id}")

    @app.route("/debug/vars")
    def debug_vars():
        return jsonify({"raft.status": cluster.snapshot(member_id).to_status()})

    @app.route("/v2/members")
    def members():
        return jsonify(cluster.members_document())

    return app


def main():
    parser = argparse.ArgumentParser(description="Run a simulated Raft cluster")
    parser.add_argument("--nodes", type=int, default=3, help="Number of members")
    parser.add_argument("--base-port", type=int, default=2379, help="Client port of the first member")
    parser.add_argument("--tick-interval", type=float, default=0.2, help="Seconds between replication rounds")
    parser.add_argument("--lag", type=int, action="append", default=[],
                        help="Index of a member that stops catching up (repeatable)")
    parser.add_argument("--stall", action="store_true", help="Leader stops committing")
    args = parser.parse_args()

    cluster = SimulatedCluster(args.nodes, args.base_port, stalled=args.stall)
    cluster.lagging = {cluster.member_ids[i] for i in args.lag}

    for mid in cluster.member_ids:
        app = create_app(cluster, mid)
        thread = threading.Thread(
            target=app.run,
            kwargs={"host": cluster.host, "port": cluster.ports[mid], "debug": False, "use_reloader": False},
            daemon=True,
        )
        thread.start()
        logging.info(f"Member {mid} serving on {cluster.client_url(mid)}")

    endpoints = ",".join(cluster.client_url(mid) for mid in cluster.member_ids)
    print(f"Try: python -m raft_health.cli --endpoints {endpoints} cluster-health --forever")
    print("Press Ctrl+C to stop")

    try:
        while True:
            cluster.tick()
            time.sleep(args.tick_interval)
    except KeyboardInterrupt:
        print("\nShutting down...")


if __name__ == "__main__":
    main()
