"""
sentiscope/detectors — offline lexical sentiment detection.
"""
