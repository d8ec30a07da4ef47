#! /usr/bin/env python3
#
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import sys

import click

import stm32mpsign.keys as keys
from stm32mpsign import image, stm32mpsign_version
from stm32mpsign.dumpinfo import dump_imginfo, parse_algorithm

MIN_PYTHON_VERSION = (3, 6)
if sys.version_info < MIN_PYTHON_VERSION:
    sys.exit("Python %s.%s or newer is required by stm32mpsign."
             % MIN_PYTHON_VERSION)

valid_hash_encodings = ['lang-c', 'raw']
valid_encodings = ['lang-c', 'pem', 'raw']

HELP_OPTIONS = dict(help_option_names=['-h', '--help'])


def load_key(keyfile, password=None):
    try:
        return keys.load(keyfile, password)
    except keys.KeyUsageError as e:
        raise click.ClickException(str(e))


@click.option('-k', '--key', metavar='filename', required=True)
@click.option('-e', '--encoding', metavar='encoding',
              type=click.Choice(valid_encodings),
              default=valid_encodings[0],
              help='Valid encodings: {}. '
                   'Default value is {}.'
                   .format(', '.join(valid_encodings), valid_encodings[0]))
@click.option('-o', '--output', metavar='output', required=False,
              help='Specify the output file\'s name. \
                    The stdout is used if it is not provided.')
@click.command(help='Dump the public key (X || Y) as embedded in the image '
                    'header', context_settings=HELP_OPTIONS)
def getpub(key, encoding, output):
    key = load_key(key)
    try:
        if encoding == 'lang-c':
            key.emit_c_public(file=output)
        elif encoding == 'pem':
            # Still refuse keys the boot ROM would not accept.
            key.get_public_bytes()
            key.emit_public_pem(file=output)
        elif encoding == 'raw':
            key.emit_raw_public(file=output)
        else:
            raise click.UsageError()
    except keys.KeyUsageError as e:
        raise click.ClickException(str(e))


@click.option('-k', '--key', metavar='filename', required=True)
@click.option('-e', '--encoding', metavar='encoding',
              type=click.Choice(valid_hash_encodings),
              default=valid_hash_encodings[0],
              help='Valid encodings: {}. '
                   'Default value is {}.'
                   .format(', '.join(valid_hash_encodings),
                           valid_hash_encodings[0]))
@click.option('-o', '--output', metavar='output', required=False,
              help='Specify the output file\'s name. \
                    The stdout is used if it is not provided.')
@click.command(help='Dump the SHA256 hash of the embedded public key, as '
                    'programmed into the public key hash OTP words',
               context_settings=HELP_OPTIONS)
def getpubhash(key, encoding, output):
    key = load_key(key)
    try:
        if encoding == 'lang-c':
            key.emit_c_public_hash(file=output)
        elif encoding == 'raw':
            key.emit_raw_public_hash(file=output)
        else:
            raise click.UsageError()
    except keys.KeyUsageError as e:
        raise click.ClickException(str(e))


@click.argument('imgfile')
@click.option('-o', '--outfile', metavar='filename', required=False,
              help='Save header information to outfile in YAML format')
@click.option('-s', '--silent', default=False, is_flag=True,
              help='Do not print header information to output')
@click.command(help='Print the header information of an STM32 image',
               context_settings=HELP_OPTIONS)
def dumpinfo(imgfile, outfile, silent):
    dump_imginfo(imgfile, outfile, silent)
    print("dumpinfo has run successfully")


@click.option('-p', '--password', metavar='string',
              help='Private key password. If not used and the key is '
                   'encrypted, it is asked for interactively.')
@click.option('-k', '--key', metavar='filename', required=True,
              help='Private key used to sign the image. Must be a '
                   'prime256v1 or brainpoolP256r1 EC key.')
@click.option('-i', '--image', 'imgfile', metavar='filename', required=True,
              help='STM32 image file to sign. The file is modified in '
                   'place.')
@click.command(help='''Sign an STM32 image in place\n
               Embeds the public key and the ECDSA/SHA256 signature of the
               image into its header.  If signing fails after the header
               has been modified, restore the image before retrying.''',
               context_settings=HELP_OPTIONS)
def sign(imgfile, key, password):
    try:
        curve_id = image.sign_image(imgfile, key, password)
    except (image.ImageError, keys.KeyUsageError) as e:
        raise click.ClickException(str(e))
    print("Image {} signed, algorithm: {}".format(
        imgfile, parse_algorithm(curve_id)))


@click.command(help='Print stm32mpsign version information',
               context_settings=HELP_OPTIONS)
def version():
    print(stm32mpsign_version)


@click.group(context_settings=HELP_OPTIONS)
def stm32mpsign():
    pass


stm32mpsign.add_command(sign)
stm32mpsign.add_command(getpub)
stm32mpsign.add_command(getpubhash)
stm32mpsign.add_command(dumpinfo)
stm32mpsign.add_command(version)


if __name__ == '__main__':
    stm32mpsign()
