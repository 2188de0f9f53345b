"""
Stand in for pmacctd when trying the exporter without a capture interface.

  pmacct-prometheus --local-address 10.0.2.1 \
    --collector-command '["python", "scripts/fake_pmacctd.py"]'
"""
import json
import random
import signal
import sys
import time


def main():
    signal.signal(signal.SIGINT, lambda *_: sys.exit(0))

    peers = ["8.8.8.8", "1.1.1.1", "81.2.69.142", "10.0.1.1", "2001:4860:4860::8888"]
    local = "10.0.2.1"

    print("INFO ( default/core ): Start logging ...", flush=True)
    while True:
        for _ in range(20):
            peer = random.choice(peers)
            src, dst = (peer, local) if random.random() < 0.6 else (local, peer)
            msg = {
                "event_type": "purge",
                "ip_src": src,
                "ip_dst": dst,
                "packets": random.randint(1, 50),
                "bytes": random.choice([60, 143, 1200, 9000]),
            }
            print(json.dumps(msg), flush=True)
        time.sleep(1)


if __name__ == "__main__":
    main()
