import logging

from bstmap import BinarySearchTree

logging.basicConfig(level=logging.INFO)

#             Ricardo
#             /
#         Ellen
#          /  \
#       Chen  Kevin
#                \
#                Kumar
student_grades = BinarySearchTree()
student_grades.insert("Ricardo", 2.5)
student_grades.insert("Ellen", 3.5)
student_grades.insert("Chen", 2.5)
student_grades.insert("Kevin", 3.25)
student_grades.insert("Kumar", 3.05)

print("Copying tree...")
grade_book = BinarySearchTree()
grade_book.assign(student_grades)

my_key = "Ellen"
print(f"Grade of {my_key} is {student_grades.search(my_key)}")

student_grades.print_inorder()

print(f"Grade book height: {grade_book.height()}")
grade_book.remove(my_key)
print(f"Grade book height after removing {my_key}: {grade_book.height()}")
