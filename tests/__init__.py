"""
Test Suite for the KCapFL Clustering Engine

This package contains unit tests and integration tests for:
- MinK selector and leftist heap invariants
- Extended kd-tree correctness against brute force
- Greedy cluster extraction and the command line interface

Run tests with: pytest -v
"""
