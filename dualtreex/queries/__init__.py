from .bruteforce import bruteforce_knn, bruteforce_range, pairwise_distances

__all__ = ["bruteforce_knn", "bruteforce_range", "pairwise_distances"]
