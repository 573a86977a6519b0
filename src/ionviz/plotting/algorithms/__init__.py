"""Algorithms used by chart construction.

Pure numpy/pandas/statsmodels code behind the histogram, smooth and facet
parts of FigureGenerator, kept separate so it can be tested without Plotly.
"""
