#!/usr/bin/env python

# Register the shared fixtures for all tests.
#
# author: Raymond Ehlers <raymond.ehlers@yale.edu>, Yale University

pytest_plugins = [
    "tests.unit.fixtures.loggingPlugin",
    "tests.unit.fixtures.eventFixtures",
    "tests.unit.fixtures.hfeFixtures",
    "tests.unit.fixtures.trdFixtures",
]
