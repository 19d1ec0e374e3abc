"""Setup script for sparse_dnn package."""

from setuptools import setup, find_packages

setup(
    name='sparse_dnn',
    version='1.0',
    packages=find_packages(include=['sparse_dnn', 'sparse_dnn.*']),
    package_data={'sparse_dnn.config': ['defaults.yaml']},
    python_requires='>=3.9',
    install_requires=[
        'numpy>=1.20.0',
        'scipy>=1.9.0',
        'PyYAML>=5.4',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
)
