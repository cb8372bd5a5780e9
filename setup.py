from setuptools import setup, find_packages

setup(
    name="tract-enrichment",
    version="0.1.0",
    description="Census tract enrichment with bounded spatial imputation",
    author="RPA",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "requests>=2.31.0",
        "pandas>=2.0.0",
        "numpy>=1.24.0",    # For numerical operations
        "pyyaml>=6.0.0",    # For YAML configuration files
        "scipy>=1.10.0",    # For KD-tree neighbour search
        "matplotlib>=3.7.0", # For static coverage maps
        "geopandas>=0.14.0",
        "shapely>=2.0.0",
        "pyproj>=3.5.0",
        "folium>=0.15.0",   # For interactive choropleth maps
        "tqdm>=4.65.0",
    ],
    extras_require={
        'dev': [
            'pytest>=7.0.0',
            'responses>=0.23.0',
            'black>=23.0.0',
            'flake8>=6.0.0',
            'mypy>=1.0.0',
        ],
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Science/Research',
        'Topic :: Scientific/Engineering :: GIS',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
    ],
)
