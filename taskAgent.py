#!/usr/bin/env python3
"""
Thin entrypoint that delegates to task_agent.main.run().
Polling, task execution, transfers and DEX trades live under task_agent/.
"""
import sys

from task_agent.main import run


if __name__ == "__main__":
    sys.exit(run())
