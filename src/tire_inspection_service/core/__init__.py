"""Core layer"""
