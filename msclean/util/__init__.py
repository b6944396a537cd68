""" Miscellaneous utility functions

"""
