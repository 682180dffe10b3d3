#!/usr/bin/env python
from setuptools import setup

setup(name='mdcache',
      version='0.3',
      description='Parser and serializer for Gentoo md5-cache metadata entries',
      author='mdcache developers',
      packages=['mdcache'],
      python_requires='>=3.7',
      install_requires=['lark>=1.1', 'dataslots>=1.1'],
      extras_require={'test': ['pytest']},
)
