"""Survival analysis of the Haberman breast-cancer surgery dataset."""

__version__ = '0.1.0'
