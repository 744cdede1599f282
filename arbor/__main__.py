import logging
import os

from rich.logging import RichHandler
from rich.pretty import pprint

from arbor import *

__prog__ = "arbor"

tree = CommandTree()


@tree.command(
    "show",
    Parameter("--verbose", ParameterKind.FLAG, ("-v",), "include node details"),
    Parameter("target", descr="what to show", required=True),
    descr="show a part of the demo grammar",
)
def show(bindings):
    match bindings["target"]:
        case "tree":
            pprint(root.successors, max_depth=None if bindings.get("--verbose") else 2)
        case "bindings":
            pprint(dict(bindings))
        case target:
            print("nothing to show for %r" % target)


@tree.command(
    "set",
    Parameter("--level", ParameterKind.NAMED, ("-l",), "level to set", required=True),
    Parameter("--tag", ParameterKind.NAMED, ("-t",), "tag to attach", repeatable=True),
    Parameter("--debug", ParameterKind.FLAG, hidden=True),
    descr="set the demo level",
)
def set_level(bindings):
    print("level set to %s" % bindings["--level"], *("#" + tag for tag in bindings.get("--tag", ())))


tree.command(Command(
    "sh",
    Parameter("target", descr="what to show", required=True),
    descr="short form of 'show'",
    wraps="show",
    hidden=True,
))

root = tree.finalize()

if __name__ == '__main__':
    logging.basicConfig(
        level=logging.DEBUG if os.environ.get("ARBOR_DEBUG") == "1" else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler()],
    )
    Shell(root, "arbor> ").run()
