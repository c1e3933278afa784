"""Re-solve controller and problem update strategies."""
