"""Fixed-model derivation for MILPs with special ordered sets."""
