"""Machine learning module for RecomEngine.

This module contains the rating record parser, the interaction dataset, the
train/test split, alternating least squares training, prediction with
cold-start handling, RMSE evaluation and model storage.
"""
