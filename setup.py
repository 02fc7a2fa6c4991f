#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from setuptools import setup, find_packages
from codecs import open
from os import path

here = path.abspath(path.dirname(__file__))

# Get the long description from the README file
with open(path.join(here, 'README.rst'), encoding='utf-8') as f:
    long_description = f.read()

setup(
    name='ensmime',
    version=__import__('ensmime').__version__,
    description='S/MIME detached signing, signature verification and encryption detection for email.',
    long_description=long_description,
    long_description_content_type='text/x-rst',
    license='MIT',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Operating System :: OS Independent',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Topic :: Software Development :: Libraries :: Python Modules',
        'Topic :: Communications :: Email',
        'Topic :: Security :: Cryptography',
    ],
    keywords='cryptography pki x509 smime email cms pkcs7 asn1',
    packages=find_packages(exclude=['examples', 'tests', 'tests.*', 'docs']),
    include_package_data=True,
    platforms=["all"],
    python_requires='>=3.10',
    install_requires=['cryptography>=42', 'asn1crypto>=1.5', 'attrs'],
    extras_require={
        'test': ['pytest'],
        'docs': ['sphinx', 'sphinx_rtd_theme'],
    },
    test_suite="tests",
)
