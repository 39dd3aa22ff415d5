"""Routes layer"""
