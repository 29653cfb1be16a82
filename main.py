import datetime

from rich.pretty import pprint

from cmdspec import *

parser = ArgumentParser([
    OptionDefinition("--date", type=datetime.date, required=True, usage="the reference date"),
    OptionDefinition("--string", "-s", usage="any text"),
    ArgumentDefinition(0, key="string_arg", metavar="STRING_ARG", usage="a text argument"),
    ArgumentDefinition(1, key="date_arg", type=datetime.date, metavar="DATE_ARG", usage="a date argument"),
], shell=True)


if __name__ == '__main__':
    pprint(parser.invoke())
