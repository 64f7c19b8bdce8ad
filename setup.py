#!/usr/bin/env python
# coding=utf-8

from setuptools import setup, Command


# Borrowed (with revisions) from https://stackoverflow.com/questions/17001010/
# how-to-run-unittest-discover-from-python-setup-py-test/21726329#21726329
class DiscoverTest(Command):
    user_options = []

    def initialize_options(self):
        pass

    def finalize_options(self):
        pass

    def run(self):
        import os
        import sys
        import unittest

        # get setup.py directory
        setup_file = sys.modules["__main__"].__file__
        test_dir = os.path.join(os.path.abspath(os.path.dirname(setup_file)), "tests")
        # use the default shared TestLoader instance
        test_loader = unittest.defaultTestLoader
        # use the basic test runner that outputs to sys.stderr
        test_runner = unittest.TextTestRunner()
        # automatically discover all tests
        test_suite = test_loader.discover(test_dir)
        # run the test suite
        result = test_runner.run(test_suite)
        if not result.wasSuccessful():
            sys.exit(1)


setup(
    name="neopair",
    version="0.1.0",
    description="paired self/neo peptide generation from somatic missense mutations",
    long_description=(
        "neopair catalogs somatic missense mutations observed in tumor "
        "samples and, for each mutated gene, derives paired peptide "
        "fragments: the germline (self) amino acid sequence and the "
        "tumor-mutant (neo) sequence over every fixed-length window that "
        "covers a mutation, for use in downstream immunogenicity screening."
    ),
    author="Mary A. Wood, Austin Nguyen, Abhinav Nellore, Reid F. Thompson",
    license="MIT",
    packages=["neopair"],
    include_package_data=True,
    zip_safe=True,
    python_requires=">=3.6",
    install_requires=["intervaltree", "numpy"],
    entry_points={"console_scripts": ["neopair=neopair:main"]},
    cmdclass={"test": DiscoverTest},
    keywords=["neoepitope", "neoantigen", "peptide", "cancer", "immunotherapy"],
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Intended Audience :: Science/Research",
        "Intended Audience :: Education",
        "Operating System :: MacOS",
        "Operating System :: Unix",
        "Topic :: Scientific/Engineering :: Medical Science Apps.",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
    ],
)
