"""Config layer"""
