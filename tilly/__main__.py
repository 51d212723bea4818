"""Entry point for `python -m tilly`."""

import sys


def _parse_cmd(text):
    """Parse a single input and print the result in test_cases.txt format."""
    from tilly.commands.classifier import IntentClassifier

    pattern, cmd = IntentClassifier().classify(text)

    print(f"> {text}")

    if cmd is None:
        print("type: none")
        return

    print(f"type: {cmd.type.value}")
    print(f"pattern: {pattern.name}")

    for key, val in cmd.payload().items():
        if val is None:
            print(f"{key}: none")
        elif isinstance(val, float) and val.is_integer():
            print(f"{key}: {int(val)}")
        else:
            print(f"{key}: {val}")


if __name__ == "__main__" or not sys.argv[0]:
    if len(sys.argv) >= 3 and sys.argv[1] == "-parse":
        _parse_cmd(" ".join(sys.argv[2:]))
    else:
        from tilly.main import main
        main()
