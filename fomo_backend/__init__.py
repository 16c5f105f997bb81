"""Backend checkout FOMO: tokenisation, catalogue de prix, panier et paiements."""

__version__ = "0.1.0"
