"""RubyRunner: executes Ruby through the system interpreter in a guest process."""

from __future__ import annotations

from coderunner.core.protocol import RUBY_CHANNEL
from coderunner.runtimes.base import SandboxedRunner

EXAMPLE_CODE = """# Ruby example
puts "Hello, Ruby!"

# Arrays
numbers = [1, 2, 3, 4, 5]
puts "Array: #{numbers}"
puts "Sum: #{numbers.sum}"
puts "Squares: #{numbers.map { |n| n ** 2 }}"

# Hashes
person = {
  name: "Alice",
  age: 25,
  city: "Lisbon"
}

person.each do |key, value|
  puts "#{key}: #{value}"
end

# Classes
class Animal
  attr_accessor :name

  def initialize(name)
    @name = name
  end

  def speak
    "#{@name} makes a sound"
  end
end

Animal.new("Rex").speak
"""


class RubyRunner(SandboxedRunner):
    language = "ruby"
    channel = RUBY_CHANNEL
    guest_module = "coderunner.runtimes.ruby.guest"

    def guest_args(self) -> list[str]:
        return [self.settings.ruby_executable]

    def get_placeholder(self) -> str:
        return '# Enter Ruby code\nputs "Hello, World!"'

    def get_example_code(self) -> str:
        return EXAMPLE_CODE
