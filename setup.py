from setuptools import setup, find_packages
setup(
    name="location_suggest",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages("src"),
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=[
        "httpx",
        "pydantic",
        "fastapi",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        'console_scripts': [
            'location_suggest=location_suggest.__main__:_safe_main'
        ]
    }
)
