"""Schedule orchestration and bulk evaluation."""
