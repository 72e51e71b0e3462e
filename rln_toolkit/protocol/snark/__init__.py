"""Snark proving backends and circuit artifact resolution."""
