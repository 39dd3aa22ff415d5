"""Tire Inspection Service"""
