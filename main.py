from rich.pretty import pprint

from commandeer import *


@parameters
class Copy:
    source = Field(str, positional=True)
    depth = Field(int, "--depth", "-d")
    ratio = Field(float, "--ratio")
    verbose = Field(bool, "--verbose", "-v")


dispatcher = Dispatcher(name="main", shell=True, fancy=True, colorful=True)


@dispatcher.command(r"^[Cc]opy$", Copy)
def callback(params: Copy):
    pprint({field.name: getattr(params, field.name) for field in Schema.of(Copy)})


if __name__ == '__main__':
    pprint(Schema.of(Copy))
    dispatch(dispatcher)
