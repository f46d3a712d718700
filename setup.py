"""Set-up file for porebox for installations using ``pip install .``"""
from setuptools import find_packages, setup


with open("requirements.txt") as f:
    required = f.read().splitlines()


setup(
    name="porebox",
    version="0.1.0",
    license="GPL",
    keywords=["porous media two-phase two-component box scheme"],
    install_requires=required,
    extras_require={"testing": ["pytest"]},
    description=(
        "Box-scheme local assembly and primary variable switching for two-phase "
        "two-component flow in porous media"
    ),
    platforms=["Linux", "Windows", "Mac OS-X"],
    package_data={"porebox": ["py.typed"]},
    packages=find_packages("src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    zip_safe=False,
)
