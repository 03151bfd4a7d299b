from setuptools import setup, find_packages

def parse_requirements(filename):
    with open(filename, 'r') as f:
        return [line.strip() for line in f.readlines() \
                if line.strip() and not line.startswith("#")]

setup(
    name="trellis-datasets",
    version="0.1.0",
    packages=find_packages(include=['trellis', 'trellis.*']),
    package_data={'trellis.builders': ['*.yaml']},
    python_requires=">=3.10.12, !=3.11.0, !=3.11.1, !=3.11.2, !=3.11.3",
    install_requires=parse_requirements('requirements.txt'),
    extras_require={'test': ['pytest>=8.0']},
    entry_points={'console_scripts': ['trellis=trellis.cli_app:app']},
)
