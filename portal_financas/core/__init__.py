"""Pure financial computation: rate resolution, baselines and panels."""
