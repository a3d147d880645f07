"""Terrain Bounded Context.

Responsible for sampled elevation inside a parcel:
- Value Objects: ElevationSample, AnalysisGrid, SlopeSummary, TerrainAnalysis
- Services: build_analysis_grid, slope_percentages, elevation_color
- Engine: TerrainAnalyzer (async, over the ElevationProvider port)
"""
