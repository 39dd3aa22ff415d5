"""Api layer"""
