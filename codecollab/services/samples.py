# codecollab/services/samples.py

from __future__ import annotations

from typing import Dict

# Keyed by the runner's language ids
PYTHON = 71
JAVASCRIPT = 63
CPP = 54
JAVA = 62

LANGUAGE_SAMPLES: Dict[int, str] = {
    PYTHON: """# Sample Python program
def greet(name):
    return f"Hello, {name}!"

print(greet("World"))""",
    JAVASCRIPT: """// Sample JavaScript
function greet(name) {
  return "Hello, " + name;
}
console.log(greet("World"));""",
    CPP: """// Sample C++
#include <iostream>
using namespace std;

int main() {
    cout << "Hello, World!" << endl;
    return 0;
}""",
    JAVA: """// Sample Java
public class Main {
    public static void main(String[] args) {
        System.out.println("Hello, World!");
    }
}""",
}


def sample_for(language_id: int) -> str:
    """Starting buffer for a new room; empty for languages without a sample."""
    return LANGUAGE_SAMPLES.get(language_id, "")
