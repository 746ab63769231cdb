"""cloudstats - anonymized usage statistics for cloud CLI tooling."""

__version__ = "0.1.0"
