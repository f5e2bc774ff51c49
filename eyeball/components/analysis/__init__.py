"""Static dependency, caller and import analysis."""
