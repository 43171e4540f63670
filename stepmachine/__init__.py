"""
stepmachine - A small, synchronous step-function executor.

Chain named steps over one shared, mutable context, with conditional
steps, sleeps, catch tables and retry-with-backoff. Loosely modelled on
the AWS Step Functions state vocabulary.
"""

__version__ = "0.1.3"
