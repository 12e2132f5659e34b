"""
Core algorithms for phylodynamic inference.

Distance computation, UPGMA tree building, molecular clock calibration,
coalescent skyline estimation, dN/dS selection analysis, and the pipeline
that chains them.
"""
