from setuptools import setup, find_packages

setup(
    name="stairbench",
    version="0.1.0",
    description="Accuracy and cost evaluation of windowed membership and frequency sketches",
    author="adamfilli",
    packages=find_packages(include=["stairbench", "stairbench.*"]),
    install_requires=[
        "matplotlib",
        "pandas",
    ],
    extras_require={
        "test": ["pytest"],
    },
    include_package_data=True,
    python_requires=">=3.11",
)
