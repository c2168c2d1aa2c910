import codecs
import os
import re
import setuptools


here = os.path.abspath(os.path.dirname(__file__))


def read(*parts):
    # intentionally *not* adding an encoding option to open, See:
    #   https://github.com/pypa/virtualenv/issues/201#issuecomment-3145690
    with codecs.open(os.path.join(here, *parts), 'r') as fp:
        return fp.read()


def find_version(*file_paths):
    version_file = read(*file_paths)
    version_match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]",
                              version_file, re.M)
    if version_match:
        return version_match.group(1)
    raise RuntimeError("Unable to find version string.")


setuptools.setup(
    name='kdindex',
    version=find_version('src/kdindex', '__init__.py'),
    author="Thomas Zamojski",
    author_email="thomas.zamojski@datastorm.fr",
    packages=['kdindex'],
    package_dir={'kdindex': 'src/kdindex'},
    license='GPLv3+',
    description="Point symbol tables backed by 2d-trees.",
    long_description=read('README'),
    python_requires='>=3.6',
    install_requires=[
        "toolz >= 0.7.4",
        "numpy",
    ],
    extras_require={
        "pandas": ["pandas"],
        "tests": ["pytest", "pandas", "shapely"],
    },
)
