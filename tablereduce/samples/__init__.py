"""Schema descriptors and analyzers for the bundled demo datasets"""
