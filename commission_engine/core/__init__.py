"""Pure calculation building blocks: cutoffs, pro-rata stubs, cycles, splits and rates."""
