"""Marker decorator for the sample project."""


def provider(func):
    return func
