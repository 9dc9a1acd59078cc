import os
import re

from setuptools import setup


def get_version():
    module_init = 'pixcheck/version.py'

    if not os.path.isfile(module_init):
        module_init = '../' + module_init
        if not os.path.isfile(module_init):
            raise ValueError('Unable to determine version!')

    return re.search(r'__version__\s*=\s*[\'"]([^\'"]*)[\'"]',
                     open(module_init).read()).group(1)


setup(name='pixcheck',
      version=get_version(),
      description='Differential tester for Porter-Duff compositing engines',
      url='https://github.com/pixcheck/pixcheck',
      author='pixcheck Developers',
      license='LGPL',
      platforms='any',
      packages=['pixcheck'],
      package_data={'pixcheck': ['data/*.yaml']},
      entry_points={
          'console_scripts': [
              'pixcheck = pixcheck.cli:run'
          ]
      },
      python_requires='>=3.8',
      install_requires=['argcomplete', 'colorlog', 'colr', 'frozendict',
                        'numpy', 'ruamel.yaml', 'wrapt'],
      extras_require={'test': ['pytest']},
      keywords='pixman compositing porter-duff test oracle',
      include_package_data=True,
      zip_safe=False,
      classifiers=[
          'Development Status :: 3 - Alpha',
          'Environment :: Console',
          'Intended Audience :: Developers',
          'Topic :: Software Development :: Testing',
          'Topic :: Multimedia :: Graphics',
          'License :: OSI Approved :: GNU Lesser General Public License v3 (LGPLv3)',
          'Programming Language :: Python :: 3 :: Only'
      ])
